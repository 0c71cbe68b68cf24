"""
Synthetic Scenes

Renders simple hands (a palm disk with straight fingers) as masks and
depth frames, together with matching skeleton joints. Used by the demo
mode of the pipeline CLI and by the tests.

Angles are in degrees in image coordinates (y down), so -90 points up.

Usage:
    from depth_gestures.data.synthetic import draw_hand, waving_sequence

    mask = draw_hand()
    for depth, left, right in waving_sequence(30):
        pipeline.process_frame(depth, left, right)
"""

import cv2
import numpy as np
from typing import Iterator, Optional, Sequence, Tuple

from ..utils.config import SensorConfig
from .frame import Joint, JointSet, TrackingState
from .projection import PinholeProjector

OPEN_HAND_ANGLES = (-150, -120, -90, -60, -30)
POINTER_ANGLES = (-90,)
PEACE_ANGLES = (-105, -75)
FIST_ANGLES = ()


def draw_hand(
    shape: Tuple[int, int] = (120, 120),
    center: Tuple[int, int] = (60, 70),
    palm_radius: int = 20,
    finger_angles: Sequence[float] = OPEN_HAND_ANGLES,
    finger_length: int = 50,
    finger_thickness: int = 5
) -> np.ndarray:
    """
    Draw a hand mask.

    Args:
        shape: (height, width) of the mask
        center: (x, y) palm center
        palm_radius: Palm disk radius (pixels)
        finger_angles: One angle per finger (degrees, image coordinates)
        finger_length: Distance from the palm center to each fingertip
        finger_thickness: Finger width (pixels)

    Returns:
        Boolean mask
    """
    canvas = np.zeros(shape, dtype=np.uint8)
    cv2.circle(canvas, center, palm_radius, 255, -1)

    for angle in finger_angles:
        rad = np.radians(angle)
        tip = (int(round(center[0] + finger_length * np.cos(rad))),
               int(round(center[1] + finger_length * np.sin(rad))))
        cv2.line(canvas, center, tip, 255, finger_thickness)

    return canvas > 0


def render_depth_frame(
    sensor: Optional[SensorConfig] = None,
    hand_center: Tuple[int, int] = (256, 200),
    hand_depth: int = 1800,
    background_depth: int = 2500,
    palm_radius: int = 25,
    finger_angles: Sequence[float] = OPEN_HAND_ANGLES,
    finger_length: int = 60,
    finger_thickness: int = 7
) -> np.ndarray:
    """
    Render a flat hand in front of a flat background.

    Returns:
        uint16 depth frame (frame_height, frame_width) in millimetres
    """
    sensor = sensor or SensorConfig()
    depth = np.full((sensor.frame_height, sensor.frame_width), background_depth, dtype=np.uint16)

    hand = draw_hand(
        shape=depth.shape,
        center=hand_center,
        palm_radius=palm_radius,
        finger_angles=finger_angles,
        finger_length=finger_length,
        finger_thickness=finger_thickness
    )
    depth[hand] = hand_depth
    return depth


def scene_joints(
    projector: PinholeProjector,
    hand_center: Tuple[int, int] = (256, 200),
    hand_depth: int = 1800,
    palm_radius: int = 25,
    body_depth: int = 2500,
    elbow_offset: Tuple[float, float] = (0.0, -0.3),
    hand_state: TrackingState = TrackingState.TRACKED
) -> JointSet:
    """
    Skeleton joints consistent with a frame from render_depth_frame.

    Joints are placed at pixel centres so that projecting them back
    lands on the intended pixel.

    Args:
        projector: Projector used by the segmenter
        hand_center: (u, v) hand joint pixel
        hand_depth: Hand depth (mm)
        palm_radius: Palm radius used for the wrist placement (pixels)
        body_depth: Shoulder depth (mm)
        elbow_offset: (dx, dy) of the elbow relative to the hand (metres)
        hand_state: Tracking state of the hand joint

    Returns:
        JointSet for one hand side
    """
    u, v = hand_center
    hand = projector.unproject(u + 0.5, v + 0.5, hand_depth)
    wrist = projector.unproject(u + 0.5, v + palm_radius + 0.5, hand_depth)
    handtip = projector.unproject(u + 0.5, v - palm_radius + 0.5, hand_depth)
    thumb = projector.unproject(u - palm_radius + 0.5, v + 0.5, hand_depth)

    shoulder = (hand[0], hand[1] + 0.2, body_depth / 1000.0)
    elbow = (hand[0] + elbow_offset[0], hand[1] + elbow_offset[1], hand[2])

    return JointSet({
        'hand': Joint(hand, hand_state),
        'wrist': Joint(wrist),
        'handtip': Joint(handtip, TrackingState.INFERRED),
        'thumb': Joint(thumb, TrackingState.INFERRED),
        'elbow': Joint(elbow),
        'shoulder': Joint(shoulder),
    })


def waving_sequence(
    n_frames: int,
    sensor: Optional[SensorConfig] = None,
    projector: Optional[PinholeProjector] = None,
    swing: float = 0.15,
    period: int = 10,
    finger_angles: Sequence[float] = OPEN_HAND_ANGLES
) -> Iterator[Tuple[np.ndarray, JointSet, JointSet]]:
    """
    Right hand held above the elbow while the forearm swings sideways.

    The hand pixels stay fixed; only the elbow moves, which is all the
    wave detector looks at.

    Yields:
        (depth, left_joints, right_joints) per frame
    """
    sensor = sensor or SensorConfig()
    projector = projector or PinholeProjector.from_config(sensor)
    depth = render_depth_frame(sensor, finger_angles=finger_angles)

    for i in range(n_frames):
        dx = swing * np.sin(2 * np.pi * i / period)
        right = scene_joints(projector, elbow_offset=(dx, -0.3))
        yield depth.copy(), JointSet(), right
