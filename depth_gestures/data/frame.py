"""
Frame Data Model

Joints, tracking states and per-frame records shared by the pipeline.

Joint positions are camera-space metres (x right, y up, z away from the
sensor). Depth frames are uint16 arrays of shape (height, width) holding
millimetres.

Usage:
    from depth_gestures.data.frame import Joint, JointSet, TrackingState

    joints = JointSet({'hand': Joint((0.1, 0.2, 1.8), TrackingState.TRACKED)})
    joints.is_tracked('hand')
"""

import numpy as np
from enum import Enum
from typing import Dict, Iterator, Optional, Tuple, TYPE_CHECKING
from dataclasses import dataclass, field

if TYPE_CHECKING:
    from ..hand.segmenter import HandRegion


class TrackingState(Enum):
    """Confidence tag attached to a joint by the body tracker."""
    NOT_TRACKED = 0
    INFERRED = 1
    TRACKED = 2


class HandSide(Enum):
    """Which hand a side-scoped operation refers to."""
    LEFT = 'Left'
    RIGHT = 'Right'

    @classmethod
    def parse(cls, value) -> 'HandSide':
        """
        Convert an enum member or a 'Left'/'Right' string to a HandSide.

        Raises:
            ValueError: for any other value
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            for side in cls:
                if side.value.lower() == value.strip().lower():
                    return side
        raise ValueError(f"Hand should be one of: Left, Right (got {value!r})")


# Joint names consumed by the pipeline
JOINT_NAMES = ('hand', 'wrist', 'handtip', 'thumb', 'shoulder', 'elbow', 'head', 'spine')


@dataclass(frozen=True)
class Joint:
    """Single skeletal joint."""
    position: Tuple[float, float, float]  # (x, y, z) metres
    tracking_state: TrackingState = TrackingState.TRACKED

    @property
    def x(self) -> float:
        return self.position[0]

    @property
    def y(self) -> float:
        return self.position[1]

    @property
    def z(self) -> float:
        return self.position[2]

    @property
    def depth_mm(self) -> int:
        """Joint depth in millimetres (negative depths clamp to 0)."""
        return int(max(self.position[2], 0.0) * 1000)


NOT_TRACKED_JOINT = Joint((0.0, 0.0, 0.0), TrackingState.NOT_TRACKED)


class JointSet:
    """
    Joints of one hand side, keyed by name.

    Missing joints behave as NOT_TRACKED so callers never need
    to special-case partial skeletons.
    """

    def __init__(self, joints: Optional[Dict[str, Joint]] = None):
        self._joints: Dict[str, Joint] = dict(joints or {})

    def __getitem__(self, name: str) -> Joint:
        return self._joints.get(name, NOT_TRACKED_JOINT)

    def __contains__(self, name: str) -> bool:
        return name in self._joints

    def __iter__(self) -> Iterator[str]:
        return iter(self._joints)

    def __len__(self) -> int:
        return len(self._joints)

    def __repr__(self) -> str:
        return f"JointSet({self._joints!r})"

    def state(self, name: str) -> TrackingState:
        return self[name].tracking_state

    def is_tracked(self, name: str) -> bool:
        return self.state(name) == TrackingState.TRACKED

    def is_missing(self, name: str) -> bool:
        return self.state(name) == TrackingState.NOT_TRACKED

    def first_tracked(self, *names: str) -> Optional[Joint]:
        """Return the first joint among names in state TRACKED."""
        for name in names:
            if self.is_tracked(name):
                return self[name]
        return None

    def to_dict(self) -> Dict[str, Joint]:
        return dict(self._joints)


@dataclass
class FrameRecord:
    """Everything the pipeline learnt from one frame, for both hands."""
    depth: Optional[np.ndarray] = None
    left_joints: JointSet = field(default_factory=JointSet)
    right_joints: JointSet = field(default_factory=JointSet)
    left_region: Optional['HandRegion'] = None
    right_region: Optional['HandRegion'] = None
    left_gesture: Optional[str] = None
    right_gesture: Optional[str] = None

    def joints(self, side) -> JointSet:
        side = HandSide.parse(side)
        return self.left_joints if side is HandSide.LEFT else self.right_joints

    def region(self, side) -> Optional['HandRegion']:
        side = HandSide.parse(side)
        return self.left_region if side is HandSide.LEFT else self.right_region

    def gesture(self, side) -> Optional[str]:
        side = HandSide.parse(side)
        return self.left_gesture if side is HandSide.LEFT else self.right_gesture
