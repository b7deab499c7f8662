"""Vehicle tracking, speed estimation and speed-limit enforcement over detection frames."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from ..models.vehicle_detection import VehicleDetection
from ..utils.error_handling import ValidationError

logger = logging.getLogger(__name__)

MS_TO_KMH = 3.6


@dataclass
class TrackPoint:
    """Bounding box center of one detection on a track."""
    x: float
    y: float
    timestamp: datetime
    confidence: float


@dataclass
class VehicleTrack:
    """A single object followed across detection frames."""

    track_id: str
    object_class: str
    intersection_id: str
    positions: List[TrackPoint] = field(default_factory=list)  # oldest first
    speed: float = 0.0  # km/h, latest estimate
    direction: str = 'north'
    total_distance: float = 0.0  # over the speed window, in meters
    average_speed: float = 0.0
    max_speed: float = 0.0
    min_speed: float = 0.0

    @property
    def last_seen(self) -> datetime:
        return self.positions[-1].timestamp

    @property
    def location(self) -> Tuple[float, float]:
        return (self.positions[-1].x, self.positions[-1].y)


@dataclass
class SpeedViolation:
    """A track observed above the speed limit."""
    track_id: str
    object_class: str
    speed: float
    speed_limit: float
    timestamp: datetime
    location: Tuple[float, float]
    severity: str  # low, medium, high


class VehicleTracker:
    """Associates detections into tracks and derives speed and direction per track.

    A detection continues the nearest active track of the same class at the
    same intersection when its box center lies within ``max_distance``
    pixels of the track's last position; otherwise it starts a new track.
    Tracks not seen for ``max_track_age`` seconds are dropped.
    """

    def __init__(self,
                 max_track_age: float = 5.0,
                 min_track_length: int = 3,
                 speed_window: int = 5,
                 direction_threshold: float = 10.0,
                 confidence_threshold: float = 0.5,
                 max_distance: float = 100.0,
                 speed_limit: float = 50.0,
                 pixels_per_meter: float = 1.0,
                 max_positions: int = 50,
                 violation_retention: timedelta = timedelta(hours=24)):
        if min_track_length < 1:
            raise ValidationError("min_track_length must be at least 1", "min_track_length", min_track_length)
        if speed_window < 2:
            raise ValidationError("speed_window must be at least 2", "speed_window", speed_window)
        if pixels_per_meter <= 0:
            raise ValidationError("pixels_per_meter must be positive", "pixels_per_meter", pixels_per_meter)

        self.max_track_age = max_track_age
        self.min_track_length = min_track_length
        self.speed_window = speed_window
        self.direction_threshold = direction_threshold
        self.confidence_threshold = confidence_threshold
        self.max_distance = max_distance
        self.pixels_per_meter = pixels_per_meter
        self.max_positions = max_positions
        self.violation_retention = violation_retention
        self.speed_limit = 0.0
        self.set_speed_limit(speed_limit)

        self.tracks: Dict[str, VehicleTrack] = {}
        self.speed_violations: List[SpeedViolation] = []

    def process_detections(self, detections: Sequence[VehicleDetection],
                           now: Optional[datetime] = None) -> List[VehicleTrack]:
        """Fold one frame of detections into the tracks.

        Args:
            detections: Detections of the frame; low-confidence ones are ignored
            now: Reference time for track expiry, defaults to the current time

        Returns:
            Tracks with at least ``min_track_length`` positions, in creation order
        """
        now = now or datetime.now()
        updated = set()

        for detection in detections:
            if detection.confidence < self.confidence_threshold:
                continue

            track_id = self._find_best_match(detection, exclude=updated)
            if track_id is None:
                track_id = self._create_track(detection)
            else:
                self._extend_track(track_id, detection)
            updated.add(track_id)

        self._expire_tracks(now)

        established = []
        for track_id, track in self.tracks.items():
            if len(track.positions) < self.min_track_length:
                continue
            if track_id in updated:
                self._update_track_metrics(track)
                self._check_speed_violation(track)
            established.append(track)

        self._prune_violations(now)
        logger.debug(f"Processed {len(detections)} detections, {len(self.tracks)} tracks held")
        return established

    def _find_best_match(self, detection: VehicleDetection, exclude: set) -> Optional[str]:
        center_x, center_y = detection.get_center()
        best_match = None
        best_distance = float('inf')

        for track_id, track in self.tracks.items():
            if track_id in exclude:
                continue
            if track.object_class != detection.object_class or track.intersection_id != detection.intersection_id:
                continue

            last_x, last_y = track.location
            distance = float(np.hypot(center_x - last_x, center_y - last_y))
            if distance < self.max_distance and distance < best_distance:
                best_match = track_id
                best_distance = distance

        return best_match

    def _create_track(self, detection: VehicleDetection) -> str:
        track_id = detection.detection_id
        if track_id in self.tracks:
            track_id = f"{track_id}-{len(self.tracks)}"

        self.tracks[track_id] = VehicleTrack(
            track_id=track_id,
            object_class=detection.object_class,
            intersection_id=detection.intersection_id,
            positions=[self._point(detection)]
        )
        return track_id

    def _extend_track(self, track_id: str, detection: VehicleDetection) -> None:
        track = self.tracks[track_id]
        track.positions.append(self._point(detection))
        del track.positions[:-self.max_positions]

    @staticmethod
    def _point(detection: VehicleDetection) -> TrackPoint:
        x, y = detection.get_center()
        return TrackPoint(x=x, y=y, timestamp=detection.timestamp, confidence=detection.confidence)

    def _expire_tracks(self, now: datetime) -> None:
        expired = [
            track_id for track_id, track in self.tracks.items()
            if (now - track.last_seen).total_seconds() > self.max_track_age
        ]
        for track_id in expired:
            del self.tracks[track_id]
        if expired:
            logger.debug(f"Expired {len(expired)} tracks")

    def _update_track_metrics(self, track: VehicleTrack) -> None:
        """Speed statistics over the recent window and heading over the whole track."""
        recent = track.positions[-self.speed_window:]
        xs = np.array([p.x for p in recent])
        ys = np.array([p.y for p in recent])
        seconds = np.array([(p.timestamp - recent[0].timestamp).total_seconds() for p in recent])

        distances = np.hypot(np.diff(xs), np.diff(ys)) / self.pixels_per_meter
        elapsed = np.diff(seconds)
        moving = elapsed > 0

        speeds = distances[moving] / elapsed[moving] * MS_TO_KMH
        track.total_distance = float(distances[moving].sum())
        if speeds.size:
            track.speed = float(speeds[-1])
            track.average_speed = float(speeds.mean())
            track.max_speed = float(speeds.max())
            track.min_speed = float(speeds.min())
        else:
            track.speed = track.average_speed = track.max_speed = track.min_speed = 0.0

        first, last = track.positions[0], track.positions[-1]
        dx, dy = last.x - first.x, last.y - first.y
        if abs(dx) > self.direction_threshold or abs(dy) > self.direction_threshold:
            if abs(dx) > abs(dy):
                track.direction = 'east' if dx > 0 else 'west'
            else:
                # image y grows downwards
                track.direction = 'south' if dy > 0 else 'north'

    def _check_speed_violation(self, track: VehicleTrack) -> None:
        if track.speed <= self.speed_limit:
            return

        if track.speed > self.speed_limit * 1.5:
            severity = 'high'
        elif track.speed > self.speed_limit * 1.2:
            severity = 'medium'
        else:
            severity = 'low'

        self.speed_violations.append(SpeedViolation(
            track_id=track.track_id,
            object_class=track.object_class,
            speed=track.speed,
            speed_limit=self.speed_limit,
            timestamp=track.last_seen,
            location=track.location,
            severity=severity
        ))
        logger.info(f"Speed violation: {track.track_id} at {track.speed:.1f} km/h ({severity})")

    def _prune_violations(self, now: datetime) -> None:
        cutoff = now - self.violation_retention
        self.speed_violations = [v for v in self.speed_violations if v.timestamp > cutoff]

    def get_active_tracks(self) -> List[VehicleTrack]:
        return list(self.tracks.values())

    def get_tracks_by_class(self, object_class: str) -> List[VehicleTrack]:
        return [track for track in self.tracks.values() if track.object_class == object_class.lower()]

    def get_track(self, track_id: str) -> Optional[VehicleTrack]:
        return self.tracks.get(track_id)

    def remove_track(self, track_id: str) -> bool:
        return self.tracks.pop(track_id, None) is not None

    def get_speed_violations(self) -> List[SpeedViolation]:
        return list(self.speed_violations)

    def set_speed_limit(self, speed_limit: float) -> None:
        """Speed limit in km/h applied to later frames."""
        if isinstance(speed_limit, bool) or not isinstance(speed_limit, (int, float)) or speed_limit <= 0:
            raise ValidationError("speed_limit must be a positive number", "speed_limit", speed_limit)
        self.speed_limit = float(speed_limit)

    def get_traffic_stats(self) -> Dict[str, any]:
        """Summary of the tracks currently held."""
        tracks = self.get_active_tracks()
        speeds = [track.speed for track in tracks if track.speed > 0]

        vehicle_counts: Dict[str, int] = {}
        for track in tracks:
            vehicle_counts[track.object_class] = vehicle_counts.get(track.object_class, 0) + 1

        return {
            'active_tracks': len(tracks),
            'established_tracks': sum(1 for t in tracks if len(t.positions) >= self.min_track_length),
            'average_speed': float(np.mean(speeds)) if speeds else 0.0,
            'speed_violations': len(self.speed_violations),
            'vehicle_counts': vehicle_counts
        }

    def reset(self) -> None:
        """Drop all tracks and violations."""
        self.tracks.clear()
        self.speed_violations = []
        logger.info("Vehicle tracker reset")
