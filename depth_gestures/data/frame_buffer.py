"""
Frame Buffer

Bounded FIFO of recent FrameRecords, read by the temporal gesture
detector.

One ingest thread pushes records; any number of readers take snapshots.
The lock only guards the append/evict and the reference copy made by
``snapshot``. Feature extraction runs on the snapshot with the lock
released, so a slow reader never stalls the capture thread.

Usage:
    from depth_gestures.data.frame_buffer import FrameBuffer

    buffer = FrameBuffer(capacity=35)
    buffer.push(record)
    features = buffer.get_dynamic_features('Right')
"""

import threading
import numpy as np
from collections import deque
from typing import List, Optional, Tuple
from dataclasses import dataclass, field

from .frame import FrameRecord, HandSide, TrackingState


@dataclass
class DynamicFeatures:
    """Per-frame features of one hand across the buffered window."""
    recognized_gestures: List[str] = field(default_factory=list)
    hand_elbow_offsets: np.ndarray = field(default_factory=lambda: np.zeros((0, 2)))

    def __len__(self) -> int:
        return len(self.recognized_gestures)

    def count(self, gesture_name: str) -> int:
        """Number of frames labelled with gesture_name."""
        return sum(1 for name in self.recognized_gestures if name == gesture_name)


class FrameBuffer:
    """Fixed-capacity FIFO of FrameRecords (oldest evicted first)."""

    def __init__(self, capacity: int = 35):
        if capacity <= 0:
            raise ValueError(f"Frame buffer capacity must be positive, got {capacity}")
        self._capacity = capacity
        self._frames = deque(maxlen=capacity)
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def min_history(self) -> int:
        """Occupancy required before temporal features are produced."""
        return self._capacity // 2

    def __len__(self) -> int:
        with self._lock:
            return len(self._frames)

    def push(self, record: FrameRecord):
        """Append a record, evicting the oldest when full."""
        with self._lock:
            self._frames.append(record)

    def latest(self) -> Optional[FrameRecord]:
        with self._lock:
            return self._frames[-1] if self._frames else None

    def oldest(self) -> Optional[FrameRecord]:
        with self._lock:
            return self._frames[0] if self._frames else None

    def snapshot(self) -> Tuple[FrameRecord, ...]:
        """Immutable copy of the buffered records, oldest first."""
        with self._lock:
            return tuple(self._frames)

    def clear(self):
        with self._lock:
            self._frames.clear()

    def get_dynamic_features(self, side) -> Optional[DynamicFeatures]:
        """
        Extract temporal features for one hand.

        Args:
            side: HandSide or 'Left'/'Right'

        Returns:
            DynamicFeatures, or None while the buffer holds fewer than
            capacity // 2 records
        """
        side = HandSide.parse(side)
        frames = self.snapshot()

        if len(frames) < self.min_history:
            return None

        gestures = []
        offsets = np.zeros((len(frames), 2))

        for i, frame in enumerate(frames):
            gestures.append(frame.gesture(side) or '')

            joints = frame.joints(side)
            elbow, hand = joints['elbow'], joints['hand']
            if (elbow.tracking_state != TrackingState.NOT_TRACKED
                    and hand.tracking_state != TrackingState.NOT_TRACKED):
                offsets[i] = (elbow.x - hand.x, elbow.y - hand.y)

        return DynamicFeatures(recognized_gestures=gestures, hand_elbow_offsets=offsets)
