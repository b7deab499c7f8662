"""Pluggable detection sources feeding object detections per intersection."""

import random
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from ..models.vehicle_detection import VehicleDetection

logger = logging.getLogger(__name__)

# Nominal box sizes (width, height) in pixels per object class
CLASS_BOX_SIZES: Dict[str, Tuple[float, float]] = {
    'car': (120.0, 80.0),
    'truck': (150.0, 100.0),
    'bus': (180.0, 110.0),
    'motorcycle': (60.0, 50.0),
    'bicycle': (55.0, 45.0),
    'person': (40.0, 90.0),
}


class DetectionSource(ABC):
    """Source of object detections for an intersection.

    The coordination engine never depends on a detection source; a driving
    loop may use one to derive vehicle counts. A real inference backend can
    replace the random generator by implementing :meth:`detect`.
    """

    @abstractmethod
    def detect(self, intersection_id: str, timestamp: datetime) -> List[VehicleDetection]:
        """Return the detections observed at an intersection at a moment."""

    def count_vehicles(self, intersection_id: str, timestamp: datetime) -> int:
        """Number of motor vehicles among the detections."""
        return sum(1 for d in self.detect(intersection_id, timestamp) if d.is_vehicle())


class RandomDetectionSource(DetectionSource):
    """Generates randomized detections; no inference is performed."""

    def __init__(self,
                 class_distribution: Optional[Dict[str, float]] = None,
                 max_detections: int = 12,
                 frame_size: Tuple[int, int] = (640, 480),
                 confidence_range: Tuple[float, float] = (0.7, 0.99),
                 speed_range: Tuple[float, float] = (0.0, 60.0),
                 seed: Optional[int] = None):
        self.class_distribution = class_distribution or {
            'car': 0.6,
            'truck': 0.1,
            'bus': 0.05,
            'motorcycle': 0.08,
            'bicycle': 0.07,
            'person': 0.1
        }
        unknown = set(self.class_distribution) - set(CLASS_BOX_SIZES)
        if unknown:
            raise ValueError(f"Unknown object classes in distribution: {sorted(unknown)}")
        if max_detections < 0:
            raise ValueError("max_detections must be non-negative")

        self.max_detections = max_detections
        self.frame_size = frame_size
        self.confidence_range = confidence_range
        self.speed_range = speed_range
        self.detection_counter = 0
        self._random = random.Random(seed)

        logger.info(f"RandomDetectionSource initialized (max {max_detections} detections per frame)")

    def _generate_object_class(self) -> str:
        """Pick an object class according to the distribution."""
        rand = self._random.random() * sum(self.class_distribution.values())
        cumulative = 0.0

        for object_class, probability in self.class_distribution.items():
            cumulative += probability
            if rand <= cumulative:
                return object_class

        return 'car'  # fallback

    def _generate_bbox(self, object_class: str) -> Tuple[float, float, float, float]:
        """Random box of roughly class-typical size, inside the frame."""
        base_width, base_height = CLASS_BOX_SIZES[object_class]
        scale = self._random.uniform(0.7, 1.3)
        width = base_width * scale
        height = base_height * scale
        frame_width, frame_height = self.frame_size
        x = self._random.uniform(0, max(0.0, frame_width - width))
        y = self._random.uniform(0, max(0.0, frame_height - height))
        return (x, y, width, height)

    def detect(self, intersection_id: str, timestamp: datetime) -> List[VehicleDetection]:
        """Generate a random frame of detections."""
        detections = []

        for _ in range(self._random.randint(0, self.max_detections)):
            self.detection_counter += 1
            object_class = self._generate_object_class()
            speed = self._random.uniform(*self.speed_range)
            if object_class == 'person':
                speed = min(speed, 6.0)

            detections.append(VehicleDetection(
                detection_id=f"det_{self.detection_counter:06d}",
                object_class=object_class,
                confidence=self._random.uniform(*self.confidence_range),
                bbox=self._generate_bbox(object_class),
                speed=speed,
                intersection_id=intersection_id,
                timestamp=timestamp
            ))

        logger.debug(f"Generated {len(detections)} detections for {intersection_id}")
        return detections
