"""
Hand Gesture Recognition Pipeline

Main entry point for running gesture recognition on depth frames.

Usage:
    python -m depth_gestures.pipeline --config configs/default.yaml --demo 40
    python -m depth_gestures.pipeline --demo 40 --set dynamic.wave.swing_cutoff=0.1
"""

import argparse
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union
from dataclasses import dataclass, field

import numpy as np
from tqdm import tqdm

from .data.frame import FrameRecord, HandSide, JointSet
from .data.frame_buffer import FrameBuffer
from .data.projection import PinholeProjector
from .data.results import Detection
from .data.synthetic import waving_sequence
from .hand.geometry import Direction, HandGeometry, HandGeometryAnalyzer
from .hand.segmenter import HandRegion, HandSegmenter
from .recognition.dynamic_detector import DynamicGestureDetector
from .recognition.matcher import GestureMatch, GestureMatcher
from .recognition.templates import (
    DynamicGestureTemplate,
    GestureCatalog,
    GestureTemplate,
    catalog_from_dict,
    load_catalog,
)
from .utils.config import Config, apply_overrides, load_config, parse_override
from .utils.logging_utils import ProgressLogger, get_logger, setup_logging

logger = get_logger(__name__)

FrameInput = Tuple[np.ndarray, JointSet, JointSet]


@dataclass
class HandResult:
    """Everything recognized for one hand in one frame."""
    side: HandSide
    region: Detection[HandRegion] = field(default_factory=Detection.no_detection)
    geometry: Detection[HandGeometry] = field(default_factory=Detection.no_detection)
    static: Detection[GestureMatch] = field(default_factory=Detection.no_match)
    dynamic: Detection[DynamicGestureTemplate] = field(
        default_factory=Detection.insufficient_history
    )

    @property
    def finger_count(self) -> int:
        return self.geometry.value.finger_count if self.geometry else 0

    @property
    def direction(self) -> Direction:
        return self.geometry.value.direction if self.geometry else Direction.UNKNOWN

    @property
    def gesture_name(self) -> Optional[str]:
        return self.static.value.name if self.static else None

    @property
    def dynamic_name(self) -> Optional[str]:
        return self.dynamic.value.name if self.dynamic else None


@dataclass
class FrameResult:
    """Per-frame output for both hands."""
    frame_index: int
    left: HandResult
    right: HandResult

    def hand(self, side: Union[HandSide, str]) -> HandResult:
        side = HandSide.parse(side)
        return self.left if side is HandSide.LEFT else self.right


class GesturePipeline:
    """
    End-to-end pipeline for hand gesture recognition.

    Stages (per hand):
    1. Segmentation - Grow the hand region from the hand joint
    2. Geometry - Palm, fingers and direction
    3. Static matching - Best template with the same finger count
    4. Dynamic detection - Temporal patterns over the frame buffer
    """

    def __init__(self, config: Optional[Config] = None, projector=None):
        """
        Initialize pipeline with configuration.

        Args:
            config: Configuration object
            projector: Optional camera-to-depth mapper (defaults to the
                       pinhole model built from the sensor intrinsics)
        """
        self.config = config or Config()
        self.config.validate()
        self.projector = projector or PinholeProjector.from_config(self.config.sensor)

        self.buffer = FrameBuffer(self.config.dynamic.buffer_capacity)

        self.segmenters: Dict[HandSide, HandSegmenter] = {}
        self.analyzers: Dict[HandSide, HandGeometryAnalyzer] = {}
        self.matchers: Dict[HandSide, GestureMatcher] = {}
        self.detectors: Dict[HandSide, DynamicGestureDetector] = {}

        for side in HandSide:
            self.segmenters[side] = HandSegmenter(
                self.config.sensor, self.config.segmentation, self.projector
            )
            self.analyzers[side] = HandGeometryAnalyzer(self.config.geometry)
            self.matchers[side] = GestureMatcher(side, self.config.matcher)
            self.detectors[side] = DynamicGestureDetector(side, self.buffer, self.config.dynamic)

        self._reliable_range = (
            self.config.sensor.min_reliable_depth,
            self.config.sensor.max_reliable_depth
        )
        self._frame_index = 0

        logger.info("Pipeline initialized")

    @property
    def reliable_range(self) -> Tuple[int, int]:
        return self._reliable_range

    def register_gesture(self, template: GestureTemplate):
        """Register a static template for both hands."""
        for matcher in self.matchers.values():
            matcher.register(template)

    def register_dynamic_gesture(self, template: DynamicGestureTemplate):
        """Register a dynamic template for both hands."""
        for detector in self.detectors.values():
            detector.register(template)

    def register_catalog(self, catalog: GestureCatalog):
        for template in catalog.static:
            self.register_gesture(template)
        for template in catalog.dynamic:
            self.register_dynamic_gesture(template)

    def load_catalog(
        self,
        source: Union[str, Path, Dict],
        base_dir: Union[str, Path] = '.'
    ) -> GestureCatalog:
        """
        Register templates from a YAML file or a ``templates`` section.

        Args:
            source: Path to a YAML file, or an already parsed section
            base_dir: Directory image paths are relative to (dict source only)

        Returns:
            The loaded GestureCatalog
        """
        if isinstance(source, dict):
            catalog = catalog_from_dict(source, base_dir)
        else:
            catalog = load_catalog(source)
        self.register_catalog(catalog)
        return catalog

    def update_reliable_depth(self, min_depth: int, max_depth: int):
        """
        Recalibrate the reliable depth band at runtime.

        Raises:
            ValueError: if the band is empty or negative
        """
        if min_depth < 0 or min_depth >= max_depth:
            raise ValueError(f"Invalid reliable depth band: [{min_depth}, {max_depth}]")
        self._reliable_range = (int(min_depth), int(max_depth))
        logger.debug(f"Reliable depth band set to {self._reliable_range}")

    def process_frame(
        self,
        depth: np.ndarray,
        left_joints: Optional[JointSet] = None,
        right_joints: Optional[JointSet] = None
    ) -> FrameResult:
        """
        Process one depth frame.

        Args:
            depth: uint16 depth frame (frame_height, frame_width), mm
            left_joints: Joints of the left hand side
            right_joints: Joints of the right hand side

        Returns:
            FrameResult for both hands
        """
        expected = (self.config.sensor.frame_height, self.config.sensor.frame_width)
        if depth.shape != expected:
            raise ValueError(f"Depth frame shape {depth.shape} != expected {expected}")

        joints = {
            HandSide.LEFT: left_joints if left_joints is not None else JointSet(),
            HandSide.RIGHT: right_joints if right_joints is not None else JointSet(),
        }

        results = {side: self._process_hand(side, depth, joints[side]) for side in HandSide}

        left, right = results[HandSide.LEFT], results[HandSide.RIGHT]
        self.buffer.push(FrameRecord(
            depth=depth.copy(),
            left_joints=joints[HandSide.LEFT],
            right_joints=joints[HandSide.RIGHT],
            left_region=left.region.value,
            right_region=right.region.value,
            left_gesture=left.gesture_name,
            right_gesture=right.gesture_name
        ))

        for side, result in results.items():
            result.dynamic = self.detectors[side].detect()

        frame_result = FrameResult(self._frame_index, left, right)
        self._frame_index += 1
        return frame_result

    def _process_hand(self, side: HandSide, depth: np.ndarray, joints: JointSet) -> HandResult:
        result = HandResult(side)

        result.region = self.segmenters[side].segment(depth, joints, self._reliable_range)
        if not result.region:
            return result

        region = result.region.value
        result.geometry = self.analyzers[side].analyze(region)
        if not result.geometry:
            return result

        result.static = self.matchers[side].match(region, result.geometry.value.finger_count)
        return result

    def process_sequence(
        self,
        frames: Iterable[FrameInput],
        show_progress: bool = False,
        total: Optional[int] = None
    ) -> List[FrameResult]:
        """
        Process a sequence of (depth, left_joints, right_joints) frames.

        Args:
            frames: Iterable of frame inputs
            show_progress: Display a tqdm progress bar instead of log lines
            total: Number of frames, if known

        Returns:
            List of FrameResult, one per frame
        """
        results = []

        if show_progress:
            for depth, left, right in tqdm(frames, total=total, desc="Frames"):
                results.append(self.process_frame(depth, left, right))
            return results

        progress = ProgressLogger(__name__, total=total)
        progress.start()
        for depth, left, right in frames:
            results.append(self.process_frame(depth, left, right))
            progress.update()
        progress.finish()

        return results


def run_demo(pipeline: GesturePipeline, n_frames: int, show_progress: bool = False) -> List[FrameResult]:
    """
    Replay a synthetic waving hand.

    The first frame's hand mask is registered as the "Open hand" template
    together with a "Hello!" wave, so the wave is recognized once the
    buffer holds enough history.
    """
    frames = list(waving_sequence(n_frames, pipeline.config.sensor, pipeline.projector))
    if not frames:
        return []

    depth, left, right = frames[0]
    region = pipeline.segmenters[HandSide.RIGHT].segment(depth, right, pipeline.reliable_range)
    if not region:
        logger.error(f"Demo hand could not be segmented: {region.reason}")
        return []

    geometry = pipeline.analyzers[HandSide.RIGHT].analyze(region.value)
    open_hand = GestureTemplate("Open hand", region.value.mask, geometry.value.finger_count)
    pipeline.register_gesture(open_hand)
    pipeline.register_dynamic_gesture(DynamicGestureTemplate("Hello!", "wave", [open_hand]))

    results = pipeline.process_sequence(frames, show_progress=show_progress, total=len(frames))

    for result in results:
        hand = result.right
        logger.info(
            f"Frame {result.frame_index:3d}: fingers={hand.finger_count} "
            f"direction={hand.direction.value} static={hand.gesture_name} "
            f"dynamic={hand.dynamic_name or hand.dynamic.status.value}"
        )

    return results


def main(argv: Optional[List[str]] = None):
    """Main entry point for CLI."""
    parser = argparse.ArgumentParser(
        description="Depth Camera Hand Gesture Recognition"
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Configuration file (defaults are used when omitted)"
    )
    parser.add_argument(
        "--set",
        action="append",
        default=[],
        metavar="SECTION.KEY=VALUE",
        help="Override a config value, e.g. matcher.max_rating=0.02 (repeatable)"
    )
    parser.add_argument(
        "--demo",
        type=int,
        default=0,
        metavar="N",
        help="Replay N frames of a synthetic waving hand"
    )
    parser.add_argument(
        "--progress",
        action="store_true",
        help="Show a progress bar"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Verbose output"
    )

    args = parser.parse_args(argv)

    setup_logging(level=logging.DEBUG if args.verbose else logging.INFO, use_tqdm=args.progress)

    logger.info("Depth Camera Hand Gesture Recognition")

    if args.config:
        logger.info(f"Config: {args.config}")
        config = load_config(args.config)
    else:
        config = Config()

    if args.set:
        logger.info(f"Overrides: {', '.join(args.set)}")
        config = apply_overrides(config, [parse_override(item) for item in args.set])

    pipeline = GesturePipeline(config)

    if config.templates and args.config:
        pipeline.load_catalog(config.templates, Path(args.config).parent)

    if args.demo > 0:
        run_demo(pipeline, args.demo, show_progress=args.progress)
    else:
        logger.info("Pipeline ready. Use from Python API or pass --demo N.")


if __name__ == "__main__":
    main()
