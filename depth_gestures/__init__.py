"""
Depth Camera Hand Gesture Recognition Package

Hand segmentation, palm/finger geometry, static template matching and
temporal gesture detection from depth frames and skeleton joints.
"""

__version__ = "1.0.0"

from . import utils
from . import data
from . import hand
from . import recognition
