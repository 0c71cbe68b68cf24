"""Static and dynamic gesture recognition module."""

from .shape_signature import ShapeSignature
from .templates import (
    GestureTemplate,
    DynamicGestureKind,
    DynamicGestureTemplate,
    GestureCatalog,
    load_catalog,
)
from .matcher import GestureMatcher, GestureMatch
from .dynamic_detector import DynamicGestureDetector

__all__ = [
    "ShapeSignature",
    "GestureTemplate",
    "DynamicGestureKind",
    "DynamicGestureTemplate",
    "GestureCatalog",
    "load_catalog",
    "GestureMatcher",
    "GestureMatch",
    "DynamicGestureDetector",
]
