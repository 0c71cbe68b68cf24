"""
Shape Signature

Compact description of a hand mask used for static gesture matching:

- the largest contour, compared with Hu-moment shape matching
- a radial histogram of mask pixels around the centroid, with angles
  measured from the principal axis so the histogram does not depend on
  in-plane rotation; compared with the Bhattacharyya distance

Usage:
    from depth_gestures.recognition.shape_signature import ShapeSignature

    sig = ShapeSignature.from_mask(mask)
    contour_score = sig.contour_score(other)
    histogram_score = sig.histogram_score(other)
"""

import cv2
import numpy as np
from typing import Optional, Tuple
from dataclasses import dataclass


@dataclass
class ShapeSignature:
    contour: np.ndarray    # (N, 1, 2) int32, OpenCV contour layout
    histogram: np.ndarray  # float32 (angle_bins, distance_bins), sums to 1

    @classmethod
    def from_mask(
        cls,
        mask: np.ndarray,
        bins: Tuple[int, int] = (8, 8)
    ) -> Optional['ShapeSignature']:
        """
        Compute the signature of a binary mask.

        Args:
            mask: 2D array, nonzero for hand pixels
            bins: (angle_bins, distance_bins)

        Returns:
            ShapeSignature, or None for an empty mask or a zero-area contour
        """
        mask_u8 = (np.asarray(mask) > 0).astype(np.uint8)
        if not mask_u8.any():
            return None

        contours, _ = cv2.findContours(mask_u8, cv2.RETR_LIST, cv2.CHAIN_APPROX_SIMPLE)
        if not contours:
            return None

        contour = max(contours, key=cv2.contourArea)
        if cv2.contourArea(contour) <= 0:
            return None

        histogram = radial_histogram(mask_u8, bins)
        if histogram is None:
            return None

        return cls(contour=contour, histogram=histogram)

    def contour_score(self, other: 'ShapeSignature') -> float:
        """Hu-moment distance (CONTOURS_MATCH_I3); 0 for identical shapes."""
        return float(cv2.matchShapes(self.contour, other.contour, cv2.CONTOURS_MATCH_I3, 0))

    def histogram_score(self, other: 'ShapeSignature') -> float:
        """Bhattacharyya distance in [0, 1]; 0 for identical histograms."""
        return float(cv2.compareHist(self.histogram, other.histogram, cv2.HISTCMP_BHATTACHARYYA))


def radial_histogram(mask_u8: np.ndarray, bins: Tuple[int, int] = (8, 8)) -> Optional[np.ndarray]:
    """
    Orientation-normalized (angle, distance) histogram of mask pixels.

    Angles are measured from the principal axis given by the second
    order central moments, wrapped to [-180, 180). Distances to the
    centroid are divided by the largest one, giving [0, 1].

    Returns:
        float32 histogram of shape bins, normalized to sum 1, or None
        when the mask has no area
    """
    moments = cv2.moments(mask_u8, binaryImage=True)
    if moments['m00'] == 0:
        return None

    cx = moments['m10'] / moments['m00']
    cy = moments['m01'] / moments['m00']
    theta = 0.5 * np.degrees(np.arctan2(2 * moments['mu11'], moments['mu20'] - moments['mu02']))

    ys, xs = np.nonzero(mask_u8)
    dx = xs - cx
    dy = ys - cy

    angles = np.degrees(np.arctan2(dy, dx)) - theta
    angles = (angles + 180.0) % 360.0 - 180.0

    distances = np.hypot(dx, dy)
    max_distance = distances.max()
    if max_distance > 0:
        distances = distances / max_distance

    hist, _, _ = np.histogram2d(
        angles, distances,
        bins=bins,
        range=[[-180.0, 180.0], [0.0, 1.0]]
    )
    total = hist.sum()
    if total > 0:
        hist = hist / total
    return hist.astype(np.float32)
