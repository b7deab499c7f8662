"""VehicleDetection data model with validation."""

from dataclasses import dataclass
from datetime import datetime
from typing import Tuple
import logging

logger = logging.getLogger(__name__)

VEHICLE_CLASSES = {'car', 'truck', 'bus', 'motorcycle'}
VALID_OBJECT_CLASSES = VEHICLE_CLASSES | {'bicycle', 'person'}


@dataclass
class VehicleDetection:
    """A detected object reported by a detection source at an intersection."""

    detection_id: str
    object_class: str  # car, truck, bus, motorcycle, bicycle, person
    confidence: float
    bbox: Tuple[float, float, float, float]  # (x, y, width, height) in frame pixels
    speed: float  # km/h
    intersection_id: str
    timestamp: datetime

    def __post_init__(self):
        """Validate the detection data."""
        self.validate()

    def validate(self) -> None:
        """Validate all fields in the detection."""
        if not self.detection_id or not isinstance(self.detection_id, str):
            raise ValueError("detection_id must be a non-empty string")

        if not isinstance(self.object_class, str) or self.object_class.lower() not in VALID_OBJECT_CLASSES:
            raise ValueError(f"object_class must be one of {VALID_OBJECT_CLASSES}")

        # Normalize object class to lowercase
        self.object_class = self.object_class.lower()

        if not isinstance(self.confidence, (int, float)) or not (0.0 <= self.confidence <= 1.0):
            raise ValueError("confidence must be a number between 0.0 and 1.0")

        if not isinstance(self.bbox, tuple) or len(self.bbox) != 4:
            raise ValueError("bbox must be a tuple (x, y, width, height)")

        x, y, width, height = self.bbox
        if width <= 0 or height <= 0:
            raise ValueError("bbox width and height must be positive")
        if x < 0 or y < 0:
            raise ValueError("bbox origin must be non-negative")

        if not isinstance(self.speed, (int, float)) or self.speed < 0:
            raise ValueError("speed must be a non-negative number")

        if not self.intersection_id or not isinstance(self.intersection_id, str):
            raise ValueError("intersection_id must be a non-empty string")

        if not isinstance(self.timestamp, datetime):
            raise ValueError("timestamp must be a datetime object")

    def is_vehicle(self) -> bool:
        """Check whether the detected object is a motor vehicle."""
        return self.object_class in VEHICLE_CLASSES

    def is_high_confidence(self, threshold: float = 0.8) -> bool:
        """Check if the detection confidence is above the threshold."""
        return self.confidence >= threshold

    def get_center(self) -> Tuple[float, float]:
        """Center of the bounding box."""
        x, y, width, height = self.bbox
        return (x + width / 2, y + height / 2)
