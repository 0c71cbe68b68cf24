"""
Dynamic Gesture Detection

Recognizes temporal gestures from the frame buffer history of one hand:

- WAVE: the hand shows one static gesture in enough frames, is held
  above the elbow nearly all the time and swings sideways
- ALTERNATION: the hand shows each of two static gestures in enough
  frames

Templates are evaluated in registration order; the first one satisfied
wins.

Usage:
    from depth_gestures.recognition.dynamic_detector import DynamicGestureDetector

    detector = DynamicGestureDetector('Right', buffer, config.dynamic)
    detector.register(DynamicGestureTemplate('Hello!', 'wave', [open_hand]))
    result = detector.detect()
"""

import numpy as np
from typing import Iterable, List, Optional, Tuple, Union

from ..data.frame import HandSide
from ..data.frame_buffer import DynamicFeatures, FrameBuffer
from ..data.results import Detection
from ..utils.config import DynamicConfig
from ..utils.logging_utils import get_logger
from .templates import DynamicGestureKind, DynamicGestureTemplate

logger = get_logger(__name__)


class DynamicGestureDetector:
    """Temporal gesture detector bound to one hand side and one buffer."""

    def __init__(
        self,
        side: Union[HandSide, str],
        buffer: FrameBuffer,
        config: Optional[DynamicConfig] = None
    ):
        """
        Args:
            side: Hand side to read from the buffer
            buffer: Shared frame history
            config: Detection fractions and swing cutoff
        """
        self.side = HandSide.parse(side)
        self.buffer = buffer
        self.config = config or DynamicConfig()
        self._templates: List[DynamicGestureTemplate] = []

        logger.info(f"{self.side.value} dynamic gesture detector initialized")

    @property
    def templates(self) -> Tuple[DynamicGestureTemplate, ...]:
        return tuple(self._templates)

    def register(self, template: DynamicGestureTemplate):
        self._templates.append(template)

    def register_all(self, templates: Iterable[DynamicGestureTemplate]):
        for template in templates:
            self.register(template)

    def detect(self) -> Detection[DynamicGestureTemplate]:
        """
        Evaluate the registered templates against the buffer.

        Returns:
            Detection holding the first satisfied template, NO_MATCH, or
            INSUFFICIENT_HISTORY while the buffer is less than half full
        """
        features = self.buffer.get_dynamic_features(self.side)
        if features is None:
            return Detection.insufficient_history(
                f"need {self.buffer.min_history} frames, have {len(self.buffer)}"
            )

        for template in self._templates:
            if self.is_satisfied(template, features):
                logger.debug(f"{self.side.value}: dynamic gesture {template.name!r}")
                return Detection.found(template)

        return Detection.no_match("no dynamic gesture satisfied")

    def is_satisfied(self, template: DynamicGestureTemplate, features: DynamicFeatures) -> bool:
        if template.kind is DynamicGestureKind.WAVE:
            return self.is_wave(template.gesture_names[0], features)
        return self.is_alternation(template.gesture_names[0], template.gesture_names[1], features)

    def is_wave(self, gesture_name: str, features: DynamicFeatures) -> bool:
        cfg = self.config
        n = len(features)
        offsets = features.hand_elbow_offsets

        if features.count(gesture_name) <= cfg.wave_gesture_fraction * n:
            return False

        # Negative y offset: hand above the elbow
        raised = int(np.count_nonzero(offsets[:, 1] < 0))
        if raised <= cfg.wave_raised_fraction * n:
            return False

        swing = float(offsets[:, 0].max() - offsets[:, 0].min())
        return swing > cfg.wave_swing_cutoff

    def is_alternation(self, first: str, second: str, features: DynamicFeatures) -> bool:
        threshold = self.config.alternation_fraction * len(features)
        return features.count(first) > threshold and features.count(second) > threshold
