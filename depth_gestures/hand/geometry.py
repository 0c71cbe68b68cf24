"""
Hand Geometry Analysis

Extracts palm and finger geometry from a normalized hand mask.

Pipeline:
1. Palm center from the distance transform maximum
2. Inner radius: largest circle around the center that stays inside the
   mask (a few background samples are tolerated for jagged edges)
3. Outer radius: fixed multiple of the inner radius
4. Fingers: connected components outside the outer disk, each with a
   tip (farthest pixel) and a base segment on the outer ring. Wide
   blobs are split into several fingers using a width ratio table.
5. Direction: nearest mask edge to the mean fingertip

Usage:
    from depth_gestures.hand.geometry import HandGeometryAnalyzer

    analyzer = HandGeometryAnalyzer(config.geometry)
    result = analyzer.analyze(region)
    if result:
        print(result.value.finger_count, result.value.direction)
"""

import cv2
import numpy as np
from enum import Enum
from typing import List, Optional, Sequence, Tuple
from dataclasses import dataclass, field

from ..data.results import Detection
from ..utils.config import GeometryConfig
from ..utils.logging_utils import get_logger
from .region_growing import grow_region
from .segmenter import HandRegion

logger = get_logger(__name__)

EQUALS_THRESHOLD = 1e-7

Point = Tuple[float, float]


class Direction(Enum):
    """Where the fingers point in mask space."""
    UNKNOWN = 'Unknown'
    UP = 'Up'
    DOWN = 'Down'
    LEFT = 'Left'
    RIGHT = 'Right'


@dataclass
class Finger:
    """One logical finger."""
    tip: Point
    base: Point
    width: float
    base_segment: Tuple[Point, Point]
    group_size: int = 1                    # logical fingers in the same blob
    bbox: Tuple[int, int, int, int] = (0, 0, 0, 0)  # (x, y, w, h) of the blob


@dataclass
class HandGeometry:
    """Palm and finger geometry of one hand mask."""
    palm_center: Tuple[int, int]
    inner_radius: int
    outer_radius: int
    fingers: List[Finger] = field(default_factory=list)
    direction: Direction = Direction.UNKNOWN
    finger_labels: Optional[np.ndarray] = None  # component id per mask pixel

    @property
    def finger_count(self) -> int:
        return len(self.fingers)

    @property
    def fingertips(self) -> np.ndarray:
        """Fingertip positions. Shape (N, 2)."""
        return np.array([f.tip for f in self.fingers], dtype=float).reshape(-1, 2)


def orientation(a: Point, b: Point, c: Point) -> float:
    """
    Signed area test of the triangle (a, b, c).

    Positive when c lies to the left of a->b in a y-up frame. Used to
    order the two base points of a finger; the sign convention is
    calibration-sensitive and configurable through
    GeometryConfig.swap_on_negative_orientation.
    """
    return (b[0] - a[0]) * (c[1] - a[1]) - (b[1] - a[1]) * (c[0] - a[0])


def distance(a: Point, b: Point) -> float:
    return float(np.hypot(a[0] - b[0], a[1] - b[1]))


class HandGeometryAnalyzer:
    """
    Computes palm center, palm radii, fingers and pointing direction.

    Scratch buffers (visited mask and component labels) are kept between
    calls and reallocated only when the mask size changes.
    """

    def __init__(self, config: Optional[GeometryConfig] = None, draw_overlay: bool = True):
        """
        Args:
            config: Geometry configuration
            draw_overlay: Render a visualization into region.overlay
        """
        self.config = config or GeometryConfig()
        self.config.validate()
        self.draw_overlay = draw_overlay

        angles = np.linspace(0.0, 2.0 * np.pi, self.config.radius_samples, endpoint=False)
        self._cos = np.cos(angles)
        self._sin = np.sin(angles)
        self._max_leakage = int(self.config.radius_samples * self.config.max_leakage_fraction)

        self._visited = None
        self._labels = None

    def analyze(self, region: HandRegion) -> Detection[HandGeometry]:
        """
        Analyze a segmented hand.

        Args:
            region: HandRegion with joints in mask coordinates

        Returns:
            Detection holding HandGeometry, or NO_DETECTION for an empty mask
        """
        mask = region.mask
        center = self.locate_palm_center(mask, region.joints.get('hand'))
        if center is None:
            logger.debug("No palm: empty mask")
            return Detection.no_detection("empty mask")

        inner = int(self.config.inner_radius_scale * self.calculate_inner_radius(mask, center))
        outer = int(inner * self.config.outer_circle_multiplier)

        if inner < 1:
            fingers = []
        else:
            fingers = self.extract_fingers(
                mask, center, inner, outer, region.joints.get('wrist')
            )

        geometry = HandGeometry(
            palm_center=center,
            inner_radius=inner,
            outer_radius=outer,
            fingers=fingers,
            direction=self.classify_direction(
                [f.tip for f in fingers], mask.shape[1], mask.shape[0]
            ),
            finger_labels=None if self._labels is None or inner < 1 else self._labels.copy()
        )

        if self.draw_overlay:
            from .overlay import render_overlay
            region.overlay = render_overlay(region, geometry)

        return Detection.found(geometry)

    # ------------------------------------------------------------------
    # Palm
    # ------------------------------------------------------------------

    def locate_palm_center(
        self,
        mask: np.ndarray,
        hand_joint: Optional[Tuple[int, int]] = None
    ) -> Optional[Tuple[int, int]]:
        """
        Locate the point deepest inside the mask.

        All pixels sharing the maximal distance-to-background are
        candidates. With the 'nearest' policy the one closest to the hand
        joint wins; with 'mean' (or without a hand joint) the candidate
        closest to the candidates' centroid wins, which keeps the center
        inside the mask.

        Returns:
            (x, y) palm center, or None for an empty mask
        """
        if not mask.any():
            return None

        dist = cv2.distanceTransform(mask.astype(np.uint8), cv2.DIST_L2, 5)
        max_dist = float(dist.max())
        if max_dist <= 0:
            return None

        ys, xs = np.nonzero(np.abs(dist - max_dist) <= EQUALS_THRESHOLD)
        candidates = np.stack([xs, ys], axis=1).astype(float)

        if self.config.palm_tie_break == 'nearest' and hand_joint is not None:
            target = np.asarray(hand_joint, dtype=float)
        else:
            target = candidates.mean(axis=0)

        best = int(np.argmin(np.sum((candidates - target) ** 2, axis=1)))
        return (int(xs[best]), int(ys[best]))

    def is_valid_inner_radius(self, mask: np.ndarray, center: Tuple[int, int], r: int) -> bool:
        """Check whether a circle of radius r around center stays inside the mask."""
        height, width = mask.shape
        cx, cy = center

        if cx + r >= width or cx - r < 0 or cy + r >= height or cy - r < 0:
            return False

        xs = np.floor(cx + r * self._cos).astype(int)
        ys = np.floor(cy + r * self._sin).astype(int)

        background = int(np.count_nonzero(~mask[ys, xs]))
        return background <= self._max_leakage

    def calculate_inner_radius(self, mask: np.ndarray, center: Tuple[int, int]) -> int:
        """Largest valid inner radius (0 if even r = 1 leaks)."""
        r = 1
        while self.is_valid_inner_radius(mask, center, r):
            r += 1
        return r - 1

    # ------------------------------------------------------------------
    # Fingers
    # ------------------------------------------------------------------

    def extract_fingers(
        self,
        mask: np.ndarray,
        center: Tuple[int, int],
        inner_radius: int,
        outer_radius: int,
        wrist: Optional[Tuple[int, int]] = None
    ) -> List[Finger]:
        """
        Extract fingers lying outside the outer palm circle.

        Returns an empty list when the attributed count exceeds
        max_fingers: over-counts are treated as unreliable.
        """
        cfg = self.config
        height, width = mask.shape
        cx, cy = center

        yy, xx = np.mgrid[0:height, 0:width]
        outside = (xx - cx) ** 2 + (yy - cy) ** 2 >= outer_radius ** 2
        admissible = mask & outside

        if self._visited is None or self._visited.shape != mask.shape:
            self._visited = np.zeros(mask.shape, dtype=bool)
            self._labels = np.zeros(mask.shape, dtype=np.int32)
        else:
            self._visited.fill(False)
            self._labels.fill(0)

        fingers: List[Finger] = []
        total = 0
        component_id = 0
        ref_width = 2.0 * inner_radius

        for y, x in np.argwhere(admissible):
            if self._visited[y, x]:
                continue

            pixels = grow_region(admissible, (x, y), self._visited)
            component_id += 1
            self._labels[pixels[:, 0], pixels[:, 1]] = component_id

            if len(pixels) < cfg.min_finger_area:
                continue

            bbox = self._bounding_box(pixels)
            tip = self._finger_tip(pixels, center)
            base = self._finger_base(pixels, center, outer_radius, mask.shape)
            if base is None:
                continue

            base_width = distance(base[0], base[1])
            if base_width <= 1:
                continue

            if wrist is not None and distance(wrist, tip) < outer_radius:
                logger.debug(f"Ignoring wrist blob at {tip}")
                continue

            ratio = base_width * cfg.finger_width_scale / ref_width
            count = self.fingers_for_ratio(ratio)

            total += count
            if total > cfg.max_fingers:
                logger.debug(f"Finger count {total} exceeds {cfg.max_fingers}; unreliable")
                return []

            fingers.extend(self._split_fingers(tip, base, base_width, count, bbox))

        return fingers

    def fingers_for_ratio(self, ratio: float) -> int:
        """Number of fingers attributed to a blob of a given base width ratio."""
        for count, upper in enumerate(self.config.finger_ratio_table, start=1):
            if ratio <= upper:
                return count
        # Beyond the table the blob is counted as a single finger
        return 1

    @staticmethod
    def _bounding_box(pixels: np.ndarray) -> Tuple[int, int, int, int]:
        ys, xs = pixels[:, 0], pixels[:, 1]
        x0, y0 = int(xs.min()), int(ys.min())
        return (x0, y0, int(xs.max()) - x0 + 1, int(ys.max()) - y0 + 1)

    @staticmethod
    def _finger_tip(pixels: np.ndarray, center: Tuple[int, int]) -> Point:
        """Pixel farthest from the palm center (row-major first on ties)."""
        order = np.lexsort((pixels[:, 1], pixels[:, 0]))
        ordered = pixels[order]
        d2 = (ordered[:, 1] - center[0]) ** 2 + (ordered[:, 0] - center[1]) ** 2
        y, x = ordered[int(np.argmax(d2))]
        return (float(x), float(y))

    @staticmethod
    def _finger_base(
        pixels: np.ndarray,
        center: Tuple[int, int],
        radius: int,
        shape: Tuple[int, int]
    ) -> Optional[Tuple[Point, Point]]:
        """
        Two extreme points of the finger where it meets the outer circle.

        Candidates are blob pixels with a 4-neighbour (or themselves)
        inside the circle; the extremes are taken in (x, y) order.

        Returns:
            (high, low) points, or None with fewer than two candidates
        """
        height, width = shape
        cx, cy = center
        ys, xs = pixels[:, 0], pixels[:, 1]
        r2 = radius ** 2

        near = np.zeros(len(pixels), dtype=bool)
        for d in (-1, 0, 1):
            nx = xs + d
            near |= (nx >= 0) & (nx < width) & ((nx - cx) ** 2 + (ys - cy) ** 2 <= r2)
            ny = ys + d
            near |= (ny >= 0) & (ny < height) & ((xs - cx) ** 2 + (ny - cy) ** 2 <= r2)

        candidates = pixels[near]
        if len(candidates) < 2:
            return None

        order = np.lexsort((candidates[:, 0], candidates[:, 1]))
        low_y, low_x = candidates[order[0]]
        high_y, high_x = candidates[order[-1]]
        return ((float(high_x), float(high_y)), (float(low_x), float(low_y)))

    def _split_fingers(
        self,
        tip: Point,
        base: Tuple[Point, Point],
        base_width: float,
        count: int,
        bbox: Tuple[int, int, int, int]
    ) -> List[Finger]:
        """Spread count finger bases evenly along the base segment."""
        p1, p2 = base
        if self.config.swap_on_negative_orientation and orientation(p2, p1, tip) < 0:
            p1, p2 = p2, p1

        ux = (p1[0] - p2[0]) / base_width
        uy = (p1[1] - p2[1]) / base_width
        finger_width = base_width / count

        fingers = []
        for j in range(count):
            d = finger_width / 2 + j * finger_width
            fingers.append(Finger(
                tip=tip,
                base=(p2[0] + d * ux, p2[1] + d * uy),
                width=finger_width,
                base_segment=(p1, p2),
                group_size=count,
                bbox=bbox
            ))
        return fingers

    # ------------------------------------------------------------------
    # Direction
    # ------------------------------------------------------------------

    @staticmethod
    def classify_direction(tips: Sequence[Point], width: int, height: int) -> Direction:
        """
        Classify pointing direction from fingertip positions.

        The mean fingertip is compared against the midpoints of the four
        mask edges; ties resolve in the order Up, Down, Left, Right.
        """
        if len(tips) == 0:
            return Direction.UNKNOWN

        mean = np.mean(np.asarray(tips, dtype=float), axis=0)
        edges = [
            (Direction.UP, (width / 2.0, 0.0)),
            (Direction.DOWN, (width / 2.0, float(height))),
            (Direction.LEFT, (0.0, height / 2.0)),
            (Direction.RIGHT, (float(width), height / 2.0)),
        ]
        distances = [distance(mean, point) for _, point in edges]
        return edges[int(np.argmin(distances))][0]
