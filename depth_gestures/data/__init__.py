"""Frame data model, buffering and synthetic scenes."""

from .frame import TrackingState, HandSide, Joint, JointSet, FrameRecord
from .results import Detection, DetectionStatus
from .projection import PinholeProjector
from .frame_buffer import FrameBuffer, DynamicFeatures

__all__ = [
    "TrackingState",
    "HandSide",
    "Joint",
    "JointSet",
    "FrameRecord",
    "Detection",
    "DetectionStatus",
    "PinholeProjector",
    "FrameBuffer",
    "DynamicFeatures",
]
