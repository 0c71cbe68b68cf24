"""
Configuration Management

Handles loading and merging configuration files. Every component receives
its section of the configuration at construction time.

Usage:
    from depth_gestures.utils.config import load_config

    config = load_config('configs/default.yaml')
"""

import yaml
from pathlib import Path
from typing import Dict, Any, List, Tuple
from dataclasses import dataclass, field


@dataclass
class SensorConfig:
    """Depth sensor geometry and reliability band."""
    frame_width: int = 512
    frame_height: int = 424
    min_reliable_depth: int = 500   # mm
    max_reliable_depth: int = 4500  # mm
    # Depth camera intrinsics (pixels)
    fx: float = 365.456
    fy: float = 365.456
    cx: float = 254.878
    cy: float = 205.395

    def validate(self):
        if self.frame_width <= 0 or self.frame_height <= 0:
            raise ValueError(
                f"Frame dimensions must be positive, got {self.frame_width}x{self.frame_height}"
            )
        if self.min_reliable_depth >= self.max_reliable_depth:
            raise ValueError(
                f"Invalid reliable depth band: [{self.min_reliable_depth}, {self.max_reliable_depth}]"
            )


@dataclass
class SegmentationConfig:
    """Hand segmentation configuration."""
    forward_threshold: int = 200   # mm in front of the hand joint
    backward_threshold: int = 25   # mm behind the hand joint
    body_depth_cutoff: int = 350   # mm between hand and torso
    hand_width: int = 120
    hand_height: int = 120
    hand_border: int = 10          # 0 - no border

    def validate(self):
        if self.hand_width <= 0 or self.hand_height <= 0:
            raise ValueError("Normalized hand dimensions must be positive")
        if 2 * self.hand_border >= min(self.hand_width, self.hand_height):
            raise ValueError(f"Hand border {self.hand_border} leaves no room for the mask")


@dataclass
class GeometryConfig:
    """Palm and finger analysis configuration."""
    outer_circle_multiplier: float = 1.60
    inner_radius_scale: float = 1.05
    radius_samples: int = 180
    max_leakage_fraction: float = 0.05
    min_finger_area: int = 15
    # Calibration-sensitive: base width is scaled before the ratio lookup
    finger_width_scale: float = 4.0
    finger_ratio_table: List[float] = field(default_factory=lambda: [1.317, 2.315, 2.815, 4.0])
    max_fingers: int = 5
    palm_tie_break: str = 'nearest'  # 'nearest' or 'mean'
    swap_on_negative_orientation: bool = True

    def validate(self):
        if self.palm_tie_break not in ('nearest', 'mean'):
            raise ValueError(f"Unknown palm tie-break policy: {self.palm_tie_break!r}")
        if list(self.finger_ratio_table) != sorted(self.finger_ratio_table):
            raise ValueError("finger_ratio_table must be sorted in ascending order")
        if self.radius_samples <= 0:
            raise ValueError("radius_samples must be positive")


@dataclass
class MatcherConfig:
    """Static gesture matching thresholds (empirically tuned)."""
    max_rating: float = 0.0125
    max_contour_score: float = 0.80
    max_histogram_score: float = 0.20
    histogram_bins: Tuple[int, int] = (8, 8)  # (angle, distance)
    require_finger_count_match: bool = True


@dataclass
class DynamicConfig:
    """Temporal gesture detection configuration."""
    buffer_capacity: int = 35
    wave_gesture_fraction: float = 0.4
    wave_raised_fraction: float = 0.9
    wave_swing_cutoff: float = 0.12  # metres
    alternation_fraction: float = 0.3

    def validate(self):
        if self.buffer_capacity <= 0:
            raise ValueError(f"buffer_capacity must be positive, got {self.buffer_capacity}")


@dataclass
class Config:
    """Main configuration container."""
    project_name: str = "depth-gestures"
    version: str = "1.0.0"

    # Sub-configurations
    sensor: SensorConfig = field(default_factory=SensorConfig)
    segmentation: SegmentationConfig = field(default_factory=SegmentationConfig)
    geometry: GeometryConfig = field(default_factory=GeometryConfig)
    matcher: MatcherConfig = field(default_factory=MatcherConfig)
    dynamic: DynamicConfig = field(default_factory=DynamicConfig)

    # Raw template catalog section, resolved by recognition.templates
    templates: Dict[str, Any] = field(default_factory=dict)

    def validate(self) -> 'Config':
        """Check every section, raising ValueError on the first problem."""
        self.sensor.validate()
        self.segmentation.validate()
        self.geometry.validate()
        self.dynamic.validate()
        return self

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'Config':
        """Create Config from dictionary."""
        config = cls()
        config_dict = config_dict or {}

        # Project settings
        project = config_dict.get('project', {})
        config.project_name = project.get('name', config.project_name)
        config.version = project.get('version', config.version)

        # Sensor config
        sensor = config_dict.get('sensor', {})
        intrinsics = sensor.get('intrinsics', {})
        config.sensor = SensorConfig(
            frame_width=sensor.get('frame_width', 512),
            frame_height=sensor.get('frame_height', 424),
            min_reliable_depth=sensor.get('min_reliable_depth', 500),
            max_reliable_depth=sensor.get('max_reliable_depth', 4500),
            fx=intrinsics.get('fx', 365.456),
            fy=intrinsics.get('fy', 365.456),
            cx=intrinsics.get('cx', 254.878),
            cy=intrinsics.get('cy', 205.395)
        )

        # Segmentation config
        seg = config_dict.get('segmentation', {})
        normalized = seg.get('normalized', {})
        config.segmentation = SegmentationConfig(
            forward_threshold=seg.get('forward_threshold', 200),
            backward_threshold=seg.get('backward_threshold', 25),
            body_depth_cutoff=seg.get('body_depth_cutoff', 350),
            hand_width=normalized.get('width', 120),
            hand_height=normalized.get('height', 120),
            hand_border=normalized.get('border', 10)
        )

        # Geometry config
        geo = config_dict.get('geometry', {})
        fingers = geo.get('fingers', {})
        config.geometry = GeometryConfig(
            outer_circle_multiplier=geo.get('outer_circle_multiplier', 1.60),
            inner_radius_scale=geo.get('inner_radius_scale', 1.05),
            radius_samples=geo.get('radius_samples', 180),
            max_leakage_fraction=geo.get('max_leakage_fraction', 0.05),
            palm_tie_break=geo.get('palm_tie_break', 'nearest'),
            min_finger_area=fingers.get('min_area', 15),
            finger_width_scale=fingers.get('width_scale', 4.0),
            finger_ratio_table=list(fingers.get('ratio_table', [1.317, 2.315, 2.815, 4.0])),
            max_fingers=fingers.get('max_count', 5),
            swap_on_negative_orientation=fingers.get('swap_on_negative_orientation', True)
        )

        # Matcher config
        matcher = config_dict.get('matcher', {})
        config.matcher = MatcherConfig(
            max_rating=matcher.get('max_rating', 0.0125),
            max_contour_score=matcher.get('max_contour_score', 0.80),
            max_histogram_score=matcher.get('max_histogram_score', 0.20),
            histogram_bins=tuple(matcher.get('histogram_bins', [8, 8])),
            require_finger_count_match=matcher.get('require_finger_count_match', True)
        )

        # Dynamic config
        dynamic = config_dict.get('dynamic', {})
        wave = dynamic.get('wave', {})
        alternation = dynamic.get('alternation', {})
        config.dynamic = DynamicConfig(
            buffer_capacity=dynamic.get('buffer_capacity', 35),
            wave_gesture_fraction=wave.get('gesture_fraction', 0.4),
            wave_raised_fraction=wave.get('raised_fraction', 0.9),
            wave_swing_cutoff=wave.get('swing_cutoff', 0.12),
            alternation_fraction=alternation.get('gesture_fraction', 0.3)
        )

        config.templates = config_dict.get('templates', {}) or {}

        return config.validate()


def load_config(config_path: str) -> Config:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to YAML config file

    Returns:
        Config object
    """
    path = Path(config_path)

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(path, 'r') as f:
        config_dict = yaml.safe_load(f)

    return Config.from_dict(config_dict)


def merge_configs(base: Dict, override: Dict) -> Dict:
    """
    Merge two config dictionaries.

    Args:
        base: Base configuration
        override: Override values

    Returns:
        Merged configuration
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value

    return result


def config_to_dict(config: Config) -> Dict[str, Any]:
    """Convert Config into the nested layout read by Config.from_dict."""
    return {
        'project': {
            'name': config.project_name,
            'version': config.version
        },
        'sensor': {
            'frame_width': config.sensor.frame_width,
            'frame_height': config.sensor.frame_height,
            'min_reliable_depth': config.sensor.min_reliable_depth,
            'max_reliable_depth': config.sensor.max_reliable_depth,
            'intrinsics': {
                'fx': config.sensor.fx,
                'fy': config.sensor.fy,
                'cx': config.sensor.cx,
                'cy': config.sensor.cy
            }
        },
        'segmentation': {
            'forward_threshold': config.segmentation.forward_threshold,
            'backward_threshold': config.segmentation.backward_threshold,
            'body_depth_cutoff': config.segmentation.body_depth_cutoff,
            'normalized': {
                'width': config.segmentation.hand_width,
                'height': config.segmentation.hand_height,
                'border': config.segmentation.hand_border
            }
        },
        'geometry': {
            'outer_circle_multiplier': config.geometry.outer_circle_multiplier,
            'inner_radius_scale': config.geometry.inner_radius_scale,
            'radius_samples': config.geometry.radius_samples,
            'max_leakage_fraction': config.geometry.max_leakage_fraction,
            'palm_tie_break': config.geometry.palm_tie_break,
            'fingers': {
                'min_area': config.geometry.min_finger_area,
                'width_scale': config.geometry.finger_width_scale,
                'ratio_table': list(config.geometry.finger_ratio_table),
                'max_count': config.geometry.max_fingers,
                'swap_on_negative_orientation': config.geometry.swap_on_negative_orientation
            }
        },
        'matcher': {
            'max_rating': config.matcher.max_rating,
            'max_contour_score': config.matcher.max_contour_score,
            'max_histogram_score': config.matcher.max_histogram_score,
            'histogram_bins': list(config.matcher.histogram_bins),
            'require_finger_count_match': config.matcher.require_finger_count_match
        },
        'dynamic': {
            'buffer_capacity': config.dynamic.buffer_capacity,
            'wave': {
                'gesture_fraction': config.dynamic.wave_gesture_fraction,
                'raised_fraction': config.dynamic.wave_raised_fraction,
                'swing_cutoff': config.dynamic.wave_swing_cutoff
            },
            'alternation': {
                'gesture_fraction': config.dynamic.alternation_fraction
            }
        },
        'templates': config.templates
    }


def parse_override(item: str) -> Dict[str, Any]:
    """
    Turn a ``section.key=value`` string into a nested dict.

    The value is parsed as YAML, so numbers, booleans and lists keep
    their types.

    Args:
        item: Override such as ``matcher.max_rating=0.02``

    Returns:
        Nested dict, e.g. ``{'matcher': {'max_rating': 0.02}}``
    """
    key, sep, raw = item.partition('=')
    if not sep or not key.strip():
        raise ValueError(f"Override must look like section.key=value, got {item!r}")

    value = yaml.safe_load(raw)
    for part in reversed(key.strip().split('.')):
        value = {part: value}
    return value


def apply_overrides(config: Config, overrides: List[Dict[str, Any]]) -> Config:
    """Return a new validated Config with nested override dicts merged in."""
    merged = config_to_dict(config)
    for override in overrides:
        merged = merge_configs(merged, override)
    return Config.from_dict(merged)


def save_config(config: Config, path: str):
    """Save configuration to YAML file."""
    with open(path, 'w') as f:
        yaml.dump(config_to_dict(config), f, default_flow_style=False)
