"""
Static Gesture Matching

Compares a segmented hand against registered templates that show the
same number of fingers and keeps the best (lowest) combined rating.

Rating = contour_score * histogram_score. A match is accepted only if
the rating and both individual scores are under their thresholds.

Usage:
    from depth_gestures.recognition.matcher import GestureMatcher

    matcher = GestureMatcher('Right', config.matcher)
    matcher.register_all(catalog.static)
    result = matcher.match(region, geometry.finger_count)
    if result:
        print(result.value.name, result.value.rating)
"""

import numpy as np
from typing import Iterable, List, Optional, Tuple, Union
from dataclasses import dataclass

from ..data.frame import HandSide
from ..data.results import Detection
from ..hand.segmenter import HandRegion
from ..utils.config import MatcherConfig
from ..utils.logging_utils import get_logger
from .shape_signature import ShapeSignature
from .templates import GestureTemplate

logger = get_logger(__name__)


@dataclass(frozen=True)
class GestureMatch:
    """Best template for one hand, with its scores."""
    template: GestureTemplate
    contour_score: float
    histogram_score: float
    rating: float
    side: HandSide

    @property
    def name(self) -> str:
        return self.template.name


class GestureMatcher:
    """Static template matcher bound to one hand side."""

    def __init__(self, side: Union[HandSide, str], config: Optional[MatcherConfig] = None):
        """
        Args:
            side: Hand side this matcher serves ('Left' or 'Right')
            config: Matching thresholds
        """
        self.side = HandSide.parse(side)
        self.config = config or MatcherConfig()
        self._templates: List[GestureTemplate] = []

        logger.info(f"{self.side.value} gesture matcher initialized")

    @property
    def templates(self) -> Tuple[GestureTemplate, ...]:
        return tuple(self._templates)

    @property
    def bins(self) -> Tuple[int, int]:
        return tuple(self.config.histogram_bins)

    def register(self, template: GestureTemplate):
        """Add a template; its signature is computed eagerly."""
        if template.signature(self.bins) is None:
            logger.warning(f"Template {template.name!r} has an empty mask and will never match")
        self._templates.append(template)

    def register_all(self, templates: Iterable[GestureTemplate]):
        for template in templates:
            self.register(template)

    def match(
        self,
        region: Union[HandRegion, np.ndarray],
        finger_count: int
    ) -> Detection[GestureMatch]:
        """
        Find the template that best matches a hand.

        Args:
            region: HandRegion or 2D mask
            finger_count: Fingers found by geometry analysis

        Returns:
            Detection holding a GestureMatch, or NO_MATCH
        """
        cfg = self.config
        mask = region.mask if isinstance(region, HandRegion) else np.asarray(region)

        signature = ShapeSignature.from_mask(mask, self.bins)
        if signature is None:
            return Detection.no_match("empty hand mask")

        best = None
        for template in self._templates:
            if cfg.require_finger_count_match and template.finger_count != finger_count:
                continue

            reference = template.signature(self.bins)
            if reference is None:
                continue

            contour_score = signature.contour_score(reference)
            histogram_score = signature.histogram_score(reference)
            rating = contour_score * histogram_score

            if best is None or rating < best.rating:
                best = GestureMatch(template, contour_score, histogram_score, rating, self.side)

        if best is None:
            return Detection.no_match(f"no template with {finger_count} fingers")

        if (best.rating > cfg.max_rating
                or best.contour_score > cfg.max_contour_score
                or best.histogram_score > cfg.max_histogram_score):
            logger.debug(
                f"{self.side.value}: rejected {best.name!r} "
                f"(rating={best.rating:.4f}, contour={best.contour_score:.3f}, "
                f"hist={best.histogram_score:.3f})"
            )
            return Detection.no_match(f"best candidate {best.name!r} above thresholds")

        return Detection.found(best)
