"""
Detection Results

Explicit present/absent result used by every per-frame stage, so the
"nothing this frame" path is visible at call sites instead of hiding
behind None.

Usage:
    result = segmenter.segment(depth, joints)
    if result:
        region = result.value
    else:
        logger.debug(result.reason)
"""

from enum import Enum
from typing import Generic, Optional, TypeVar
from dataclasses import dataclass

T = TypeVar('T')


class DetectionStatus(Enum):
    DETECTED = 'detected'
    NO_DETECTION = 'no_detection'
    NO_MATCH = 'no_match'
    INSUFFICIENT_HISTORY = 'insufficient_history'


@dataclass(frozen=True)
class Detection(Generic[T]):
    """Outcome of one detection stage."""
    status: DetectionStatus
    value: Optional[T] = None
    reason: str = ''

    @classmethod
    def found(cls, value: T) -> 'Detection[T]':
        return cls(DetectionStatus.DETECTED, value)

    @classmethod
    def no_detection(cls, reason: str = '') -> 'Detection[T]':
        return cls(DetectionStatus.NO_DETECTION, None, reason)

    @classmethod
    def no_match(cls, reason: str = '') -> 'Detection[T]':
        return cls(DetectionStatus.NO_MATCH, None, reason)

    @classmethod
    def insufficient_history(cls, reason: str = '') -> 'Detection[T]':
        return cls(DetectionStatus.INSUFFICIENT_HISTORY, None, reason)

    @property
    def present(self) -> bool:
        return self.status is DetectionStatus.DETECTED

    def __bool__(self) -> bool:
        return self.present

    def unwrap(self) -> T:
        """Return the value, raising if the stage detected nothing."""
        if not self.present:
            raise ValueError(f"No value ({self.status.value}): {self.reason}")
        return self.value
