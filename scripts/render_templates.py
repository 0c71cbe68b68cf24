#!/usr/bin/env python
"""
Template Rendering Script

Renders synthetic reference masks for the default gesture catalog and
writes a catalog file that references them:

1. Draw each static gesture as a 120x120 mask
2. Save the masks as PNG images
3. Write catalog.yaml with the static and dynamic entries

Usage:
    python scripts/render_templates.py --output_dir ./templates
    python -m depth_gestures.pipeline --config ./templates/catalog.yaml --demo 40
"""

import argparse
from pathlib import Path
import cv2
import numpy as np
import yaml
from tqdm import tqdm
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from depth_gestures.data.synthetic import (
    draw_hand, OPEN_HAND_ANGLES, POINTER_ANGLES, PEACE_ANGLES, FIST_ANGLES
)
from depth_gestures.utils.logging_utils import setup_logging, get_logger

logger = get_logger(__name__)

# name -> (file stem, draw_hand arguments)
STATIC_GESTURES = {
    "Open hand": ("open_hand", {'finger_angles': OPEN_HAND_ANGLES}),
    "Pointer": ("pointer", {'finger_angles': POINTER_ANGLES}),
    "Fist": ("fist", {'finger_angles': FIST_ANGLES}),
    "Peace": ("peace", {'finger_angles': PEACE_ANGLES}),
    "Spock": ("spock", {'finger_angles': (-150, -120, -60, -30)}),
    "Rock'n'roll!": ("rock", {'finger_angles': (-170, -120, -60)}),
    "Thumbs up!": ("thumbs_up", {'finger_angles': (-90,), 'finger_length': 42,
                                 'finger_thickness': 9}),
}

DYNAMIC_GESTURES = [
    {'name': "Hello!", 'kind': 'wave', 'gestures': ["Open hand"]},
    {'name': "One finger wave", 'kind': 'wave', 'gestures': ["Pointer"]},
    {'name': "Flash for attention", 'kind': 'alternation', 'gestures': ["Open hand", "Fist"]},
]


def render_templates(output_dir: Path) -> Path:
    """Render all static gestures and write the catalog file."""
    image_dir = output_dir / 'images'
    image_dir.mkdir(parents=True, exist_ok=True)

    static = []
    for name, (stem, kwargs) in tqdm(STATIC_GESTURES.items(), desc="Rendering"):
        mask = draw_hand(**kwargs)
        path = image_dir / f"{stem}.png"
        cv2.imwrite(str(path), mask.astype(np.uint8) * 255)
        static.append({
            'name': name,
            'image': f"images/{stem}.png",
            'fingers': len(kwargs['finger_angles'])
        })

    catalog_path = output_dir / 'catalog.yaml'
    with open(catalog_path, 'w') as f:
        yaml.safe_dump({'templates': {'static': static, 'dynamic': DYNAMIC_GESTURES}},
                       f, sort_keys=False)

    logger.info(f"Wrote {len(static)} templates to {catalog_path}")
    return catalog_path


def main():
    parser = argparse.ArgumentParser(description="Render synthetic gesture templates")
    parser.add_argument(
        "--output_dir",
        type=str,
        default="./templates",
        help="Output directory"
    )
    args = parser.parse_args()

    setup_logging()
    render_templates(Path(args.output_dir))


if __name__ == "__main__":
    main()
