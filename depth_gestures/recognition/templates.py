"""
Gesture Templates

Static templates (reference hand masks with an expected finger count)
and dynamic templates (temporal patterns over static gestures), plus a
YAML catalog loader.

Catalog layout:

    templates:
      static:
        - name: Open hand
          image: templates/open_hand.png   # relative to the YAML file
          fingers: 5
      dynamic:
        - name: Hello!
          kind: wave
          gestures: [Open hand]

Usage:
    from depth_gestures.recognition.templates import load_catalog

    catalog = load_catalog('configs/default.yaml')
    for template in catalog.static:
        print(template.name, template.finger_count)
"""

import cv2
import yaml
import numpy as np
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union
from dataclasses import dataclass, field

from ..utils.logging_utils import get_logger
from .shape_signature import ShapeSignature

logger = get_logger(__name__)


class GestureTemplate:
    """
    Reference hand shape.

    The shape signature is computed on first use and cached per
    histogram bin layout.
    """

    def __init__(self, name: str, mask: np.ndarray, finger_count: int):
        """
        Args:
            name: Gesture name
            mask: 2D reference mask (nonzero = hand)
            finger_count: Number of fingers the gesture shows
        """
        mask = np.asarray(mask)
        if mask.ndim != 2:
            raise ValueError(f"Template mask must be 2D, got shape {mask.shape}")

        self.name = name
        self.mask = mask > 0
        self.finger_count = int(finger_count)
        self._signatures: Dict[Tuple[int, int], Optional[ShapeSignature]] = {}

    def signature(self, bins: Tuple[int, int] = (8, 8)) -> Optional[ShapeSignature]:
        bins = tuple(bins)
        if bins not in self._signatures:
            self._signatures[bins] = ShapeSignature.from_mask(self.mask, bins)
        return self._signatures[bins]

    @classmethod
    def from_image(cls, name: str, path: Union[str, Path], finger_count: int) -> 'GestureTemplate':
        """
        Load a template from a grayscale image (pixels > 127 are hand).

        Raises:
            FileNotFoundError: if the image is missing or unreadable
        """
        path = Path(path)
        image = cv2.imread(str(path), cv2.IMREAD_GRAYSCALE)
        if image is None:
            raise FileNotFoundError(f"Template image not found: {path}")
        return cls(name, image > 127, finger_count)

    def __repr__(self) -> str:
        return (f"GestureTemplate(name={self.name!r}, fingers={self.finger_count}, "
                f"shape={self.mask.shape})")


class DynamicGestureKind(Enum):
    """Temporal pattern of a dynamic gesture, with its template arity."""
    WAVE = 'wave'
    ALTERNATION = 'alternation'

    @property
    def arity(self) -> int:
        return 1 if self is DynamicGestureKind.WAVE else 2

    @classmethod
    def parse(cls, value) -> 'DynamicGestureKind':
        if isinstance(value, cls):
            return value
        for kind in cls:
            if kind.value == str(value).strip().lower():
                return kind
        raise ValueError(f"Unknown dynamic gesture kind: {value!r}")


@dataclass
class DynamicGestureTemplate:
    """
    Temporal gesture over static templates.

    WAVE references exactly one static template and ALTERNATION exactly
    two with distinct names; anything else raises ValueError.
    """
    name: str
    kind: DynamicGestureKind
    gestures: Tuple[GestureTemplate, ...]

    def __post_init__(self):
        self.kind = DynamicGestureKind.parse(self.kind)
        self.gestures = tuple(self.gestures)
        if len(self.gestures) != self.kind.arity:
            raise ValueError(
                f"{self.kind.name} gesture {self.name!r} needs exactly "
                f"{self.kind.arity} template(s), got {len(self.gestures)}"
            )
        if len(set(self.gesture_names)) != len(self.gestures):
            raise ValueError(
                f"{self.kind.name} gesture {self.name!r} references {self.gestures[0].name!r} twice"
            )

    @property
    def gesture_names(self) -> Tuple[str, ...]:
        return tuple(g.name for g in self.gestures)


@dataclass
class GestureCatalog:
    """Static and dynamic templates loaded together."""
    static: List[GestureTemplate] = field(default_factory=list)
    dynamic: List[DynamicGestureTemplate] = field(default_factory=list)

    def get(self, name: str) -> Optional[GestureTemplate]:
        for template in self.static:
            if template.name == name:
                return template
        return None


def catalog_from_dict(section: Dict[str, Any], base_dir: Union[str, Path] = '.') -> GestureCatalog:
    """
    Build a catalog from a ``templates`` section.

    Args:
        section: Dict with optional 'static' and 'dynamic' lists
        base_dir: Directory image paths are relative to

    Returns:
        GestureCatalog
    """
    base_dir = Path(base_dir)
    section = section or {}
    catalog = GestureCatalog()

    for entry in section.get('static', []) or []:
        image = Path(entry['image'])
        if not image.is_absolute():
            image = base_dir / image
        catalog.static.append(
            GestureTemplate.from_image(entry['name'], image, entry.get('fingers', 0))
        )

    for entry in section.get('dynamic', []) or []:
        gestures = []
        for gesture_name in entry.get('gestures', []):
            template = catalog.get(gesture_name)
            if template is None:
                raise ValueError(
                    f"Dynamic gesture {entry['name']!r} references unknown template {gesture_name!r}"
                )
            gestures.append(template)
        catalog.dynamic.append(DynamicGestureTemplate(entry['name'], entry['kind'], gestures))

    logger.info(f"Loaded {len(catalog.static)} static and {len(catalog.dynamic)} dynamic templates")
    return catalog


def load_catalog(path: Union[str, Path]) -> GestureCatalog:
    """
    Load the ``templates`` section of a YAML file.

    Raises:
        FileNotFoundError: if the file or a referenced image is missing
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Catalog file not found: {path}")

    with open(path, 'r') as f:
        data = yaml.safe_load(f) or {}

    return catalog_from_dict(data.get('templates', {}), path.parent)
