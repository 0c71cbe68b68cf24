"""
Hand Geometry Overlay

Draws palm circles, joints and fingers onto a BGR rendering of the
normalized hand mask, for debugging and display.

Usage:
    from depth_gestures.hand.overlay import render_overlay

    image = render_overlay(region, geometry)
"""

import cv2
import numpy as np

from .segmenter import HandRegion

FINGER_COLORS = ['#e41a1c', '#377eb8', '#4daf4a', '#984ea3', '#ff7f00']

PALM_COLOR = (255, 0, 0)
INNER_COLOR = (0, 128, 255)
OUTER_COLOR = (0, 255, 255)
WRIST_COLOR = (0, 0, 255)
FINGER_TINT = (80, 80, 80)


def _bgr(hex_color: str):
    r, g, b = bytes.fromhex(hex_color[1:])
    return (b, g, r)


def render_overlay(region: HandRegion, geometry) -> np.ndarray:
    """
    Render the analysis of one hand.

    Args:
        region: Segmented hand (mask + joints in mask coordinates)
        geometry: HandGeometry computed from region

    Returns:
        BGR image of shape (height, width, 3)
    """
    result = cv2.cvtColor(region.mask_image(), cv2.COLOR_GRAY2BGR)

    # Finger blobs in grey
    if geometry.finger_labels is not None and geometry.fingers:
        result[geometry.finger_labels > 0] = FINGER_TINT

    cx, cy = geometry.palm_center
    if geometry.inner_radius > 0:
        cv2.circle(result, (cx, cy), geometry.inner_radius, INNER_COLOR, 1)
        cv2.circle(result, (cx, cy), geometry.outer_radius, OUTER_COLOR, 1)
    cv2.circle(result, (cx, cy), 2, PALM_COLOR, -1)

    wrist = region.joints.get('wrist')
    if wrist is not None:
        cv2.circle(result, (int(wrist[0]), int(wrist[1])), 2, WRIST_COLOR, -1)

    for i, finger in enumerate(geometry.fingers):
        color = _bgr(FINGER_COLORS[i % len(FINGER_COLORS)])
        tip = (int(finger.tip[0]), int(finger.tip[1]))
        base = (int(finger.base[0]), int(finger.base[1]))
        cv2.line(result, base, tip, color, 1)
        cv2.circle(result, tip, 2, color, -1)

    return result
