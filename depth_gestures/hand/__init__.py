"""Hand segmentation and geometry module."""

from .region_growing import grow_region
from .segmenter import HandSegmenter, HandRegion
from .geometry import HandGeometryAnalyzer, HandGeometry, Finger, Direction
from .overlay import render_overlay

__all__ = [
    "grow_region",
    "HandSegmenter",
    "HandRegion",
    "HandGeometryAnalyzer",
    "HandGeometry",
    "Finger",
    "Direction",
    "render_overlay",
]
