"""
Hand Segmentation

Isolates the hand from a depth frame by growing a region from the
projected hand joint, then crops and rescales it into a fixed-size mask
so later stages see the same scale regardless of distance.

Pipeline:
1. Check joint tracking states
2. Reject hands that are not clearly in front of the torso
3. 4-connected region growing inside a depth band around the hand joint
4. Crop to the bounding box and resize (aspect preserving, centred,
   with a border margin) into the normalized mask

Usage:
    from depth_gestures.hand.segmenter import HandSegmenter

    segmenter = HandSegmenter(config.sensor, config.segmentation, projector)
    result = segmenter.segment(depth, joints)
    if result:
        region = result.value
"""

import numpy as np
from typing import Dict, Optional, Tuple
from dataclasses import dataclass, field

from ..data.frame import JointSet
from ..data.results import Detection
from ..utils.config import SensorConfig, SegmentationConfig
from ..utils.logging_utils import get_logger
from .region_growing import grow_region

logger = get_logger(__name__)

# Joints carried into mask coordinates for geometry analysis
MASK_JOINTS = ('hand', 'wrist', 'handtip', 'thumb')
BODY_JOINTS = ('shoulder', 'head', 'spine')


@dataclass
class HandRegion:
    """Segmented hand in normalized mask space."""
    mask: np.ndarray                      # bool (hand_height, hand_width)
    bbox: Tuple[int, int, int, int]       # (x, y, width, height) in the frame
    joints: Dict[str, Tuple[int, int]] = field(default_factory=dict)  # mask coords
    overlay: Optional[np.ndarray] = None  # BGR visualization

    @property
    def width(self) -> int:
        return self.mask.shape[1]

    @property
    def height(self) -> int:
        return self.mask.shape[0]

    @property
    def area(self) -> int:
        return int(np.count_nonzero(self.mask))

    def mask_image(self) -> np.ndarray:
        """Mask as a uint8 image (0 / 255)."""
        return self.mask.astype(np.uint8) * 255


@dataclass(frozen=True)
class _MaskTransform:
    """Frame-to-mask mapping shared by the mask and the joints."""
    x0: int
    y0: int
    ratio: float
    x_offset: int
    y_offset: int

    def apply(self, u: float, v: float) -> Tuple[int, int]:
        x = int(np.floor((u - self.x0) * self.ratio)) + self.x_offset
        y = int(np.floor((v - self.y0) * self.ratio)) + self.y_offset
        return (x, y)


class HandSegmenter:
    """
    Segments one hand from a depth frame.

    Keeps a frame-sized visited buffer between calls to avoid
    reallocating it for every frame.
    """

    def __init__(
        self,
        sensor: Optional[SensorConfig] = None,
        segmentation: Optional[SegmentationConfig] = None,
        projector=None
    ):
        """
        Args:
            sensor: Frame dimensions and reliable depth band
            segmentation: Depth thresholds and normalized mask size
            projector: Object with project((x, y, z)) -> (u, v) or None
        """
        self.sensor = sensor or SensorConfig()
        self.segmentation = segmentation or SegmentationConfig()
        if projector is None:
            from ..data.projection import PinholeProjector
            projector = PinholeProjector.from_config(self.sensor)
        self.projector = projector

        self._visited = np.zeros(
            (self.sensor.frame_height, self.sensor.frame_width), dtype=bool
        )

    def segment(
        self,
        depth: np.ndarray,
        joints: JointSet,
        reliable_range: Optional[Tuple[int, int]] = None
    ) -> Detection[HandRegion]:
        """
        Segment the hand described by joints.

        Args:
            depth: uint16 depth frame (frame_height, frame_width), mm
            joints: JointSet of one hand side
            reliable_range: Optional (min, max) override of the sensor's
                            reliable depth band

        Returns:
            Detection holding a HandRegion, or NO_DETECTION
        """
        if not joints.is_tracked('hand'):
            return self._reject("hand joint not tracked")
        for name in ('wrist', 'handtip', 'thumb'):
            if joints.is_missing(name):
                return self._reject(f"{name} joint not tracked")

        hand = joints['hand']
        seed = self.projector.project(hand.position)
        if seed is None or not np.all(np.isfinite(seed)):
            return self._reject("hand joint cannot be projected")

        hand_depth = hand.depth_mm
        body = joints.first_tracked(*BODY_JOINTS)
        body_depth = body.depth_mm if body is not None else 0

        if body_depth - hand_depth < self.segmentation.body_depth_cutoff:
            return self._reject(
                f"hand too close to body ({body_depth - hand_depth} mm)"
            )

        expected = (self.sensor.frame_height, self.sensor.frame_width)
        if depth.shape != expected:
            raise ValueError(f"Depth frame shape {depth.shape} != expected {expected}")

        seed_xy = (int(np.floor(seed[0])), int(np.floor(seed[1])))
        pixels = self.grow_hand_mask(depth, seed_xy, hand_depth, reliable_range)

        if len(pixels) == 0:
            return self._reject("seed pixel not admissible")

        ys, xs = pixels[:, 0], pixels[:, 1]
        min_x, max_x = int(xs.min()), int(xs.max())
        min_y, max_y = int(ys.min()), int(ys.max())

        if max_x <= min_x or max_y <= min_y:
            return self._reject("degenerate hand region")

        bbox = (min_x, min_y, max_x - min_x + 1, max_y - min_y + 1)

        crop = np.zeros((bbox[3], bbox[2]), dtype=bool)
        crop[ys - min_y, xs - min_x] = True

        mask, transform = self._resize(crop, min_x, min_y)

        mapped = {}
        for name in MASK_JOINTS:
            point = self.projector.project(joints[name].position)
            if point is not None and np.all(np.isfinite(point)):
                mapped[name] = transform.apply(point[0], point[1])

        return Detection.found(HandRegion(mask=mask, bbox=bbox, joints=mapped))

    def grow_hand_mask(
        self,
        depth: np.ndarray,
        seed: Tuple[int, int],
        base_depth: int,
        reliable_range: Optional[Tuple[int, int]] = None
    ) -> np.ndarray:
        """
        Flood fill the hand in frame space.

        A pixel is admitted if it lies strictly inside the reliable band
        and within [base - forward_threshold, base + backward_threshold].

        Args:
            depth: Depth frame (mm)
            seed: (x, y) start pixel
            base_depth: Reference depth of the hand joint (mm)
            reliable_range: Optional (min, max) reliable depth override

        Returns:
            (N, 2) array of (y, x) pixels in the hand
        """
        min_reliable, max_reliable = reliable_range or (
            self.sensor.min_reliable_depth, self.sensor.max_reliable_depth
        )
        d = depth.astype(np.int32)
        admissible = (
            (d > min_reliable) & (d < max_reliable)
            & (d >= base_depth - self.segmentation.forward_threshold)
            & (d <= base_depth + self.segmentation.backward_threshold)
        )

        if self._visited.shape != depth.shape:
            self._visited = np.zeros(depth.shape, dtype=bool)
        else:
            self._visited.fill(False)

        return grow_region(admissible, seed, self._visited)

    def _resize(self, crop: np.ndarray, x0: int, y0: int) -> Tuple[np.ndarray, _MaskTransform]:
        """Nearest-neighbour resize of the cropped hand into the normalized mask."""
        seg = self.segmentation
        height, width = crop.shape

        if width > height:
            ratio = (seg.hand_width - seg.hand_border * 2) / width
        else:
            ratio = (seg.hand_height - seg.hand_border * 2) / height

        new_width = max(1, int(np.floor(ratio * width)))
        new_height = max(1, int(np.floor(ratio * height)))

        x_offset = (seg.hand_width - new_width) // 2
        y_offset = (seg.hand_height - new_height) // 2

        src_x = np.minimum((np.arange(new_width) / ratio).astype(int), width - 1)
        src_y = np.minimum((np.arange(new_height) / ratio).astype(int), height - 1)

        mask = np.zeros((seg.hand_height, seg.hand_width), dtype=bool)
        mask[y_offset:y_offset + new_height, x_offset:x_offset + new_width] = \
            crop[np.ix_(src_y, src_x)]

        return mask, _MaskTransform(x0, y0, ratio, x_offset, y_offset)

    @staticmethod
    def _reject(reason: str) -> Detection[HandRegion]:
        logger.debug(f"No hand: {reason}")
        return Detection.no_detection(reason)
