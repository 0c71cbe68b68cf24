"""Tests for configuration, logging and the template catalog."""

import logging

import cv2
import pytest
import numpy as np
import sys
import yaml
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from depth_gestures.data.synthetic import draw_hand, FIST_ANGLES
from depth_gestures.recognition.templates import DynamicGestureKind, load_catalog
from depth_gestures.utils.config import (
    Config, apply_overrides, load_config, merge_configs, parse_override, save_config
)
from depth_gestures.pipeline import main
from depth_gestures.utils.logging_utils import ProgressLogger, get_logger, setup_logging

REPO_ROOT = Path(__file__).parent.parent


class TestConfig:
    """Tests for Config loading and validation."""

    def test_defaults(self):
        """Test default values."""
        config = Config()
        assert config.sensor.frame_width == 512
        assert config.sensor.frame_height == 424
        assert config.segmentation.forward_threshold == 200
        assert config.segmentation.backward_threshold == 25
        assert config.segmentation.body_depth_cutoff == 350
        assert config.geometry.outer_circle_multiplier == 1.60
        assert config.matcher.max_rating == 0.0125
        assert config.dynamic.buffer_capacity == 35

    def test_default_yaml_matches_defaults(self):
        """Test that the shipped config file holds the default values."""
        config = load_config(REPO_ROOT / 'configs' / 'default.yaml')
        defaults = Config()

        assert config.sensor == defaults.sensor
        assert config.segmentation == defaults.segmentation
        assert config.geometry == defaults.geometry
        assert config.matcher == defaults.matcher
        assert config.dynamic == defaults.dynamic

    def test_missing_file(self, tmp_path):
        """Test that a missing config raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / 'missing.yaml')

    def test_from_dict_overrides(self):
        """Test nested overrides."""
        config = Config.from_dict({
            'segmentation': {'forward_threshold': 150, 'normalized': {'width': 96, 'height': 96}},
            'geometry': {'palm_tie_break': 'mean', 'fingers': {'max_count': 4}},
            'dynamic': {'wave': {'swing_cutoff': 0.2}},
        })
        assert config.segmentation.forward_threshold == 150
        assert config.segmentation.hand_width == 96
        assert config.geometry.palm_tie_break == 'mean'
        assert config.geometry.max_fingers == 4
        assert config.dynamic.wave_swing_cutoff == 0.2
        assert config.dynamic.alternation_fraction == 0.3

    def test_round_trip(self, tmp_path):
        """Test saving and reloading a config."""
        config = Config.from_dict({'sensor': {'min_reliable_depth': 600}})
        path = tmp_path / 'config.yaml'
        save_config(config, str(path))

        loaded = load_config(path)
        assert loaded.sensor == config.sensor
        assert loaded.geometry == config.geometry
        assert loaded.matcher.histogram_bins == (8, 8)

    @pytest.mark.parametrize("override", [
        {'sensor': {'min_reliable_depth': 5000}},
        {'sensor': {'frame_width': 0}},
        {'geometry': {'palm_tie_break': 'median'}},
        {'geometry': {'fingers': {'ratio_table': [2.0, 1.0]}}},
        {'dynamic': {'buffer_capacity': 0}},
        {'segmentation': {'normalized': {'border': 60}}},
    ])
    def test_invalid_values(self, override):
        """Test that invalid values fail fast."""
        with pytest.raises(ValueError):
            Config.from_dict(override)

    def test_merge_configs(self):
        """Test recursive dictionary merge."""
        base = {'a': 1, 'b': {'c': 2, 'd': 3}}
        merged = merge_configs(base, {'b': {'c': 5}, 'e': 6})
        assert merged == {'a': 1, 'b': {'c': 5, 'd': 3}, 'e': 6}
        assert base['b']['c'] == 2

    def test_parse_override(self):
        """Test dotted key=value overrides with YAML-typed values."""
        assert parse_override('matcher.max_rating=0.02') == {'matcher': {'max_rating': 0.02}}
        assert parse_override('geometry.fingers.ratio_table=[1.5, 2.5]') == {
            'geometry': {'fingers': {'ratio_table': [1.5, 2.5]}}
        }
        with pytest.raises(ValueError):
            parse_override('matcher.max_rating')

    def test_apply_overrides(self):
        """Test that overrides merge over a config and keep other values."""
        base = Config.from_dict({'sensor': {'min_reliable_depth': 600}})
        config = apply_overrides(base, [
            parse_override('dynamic.wave.swing_cutoff=0.2'),
            parse_override('matcher.require_finger_count_match=false'),
        ])

        assert config.dynamic.wave_swing_cutoff == 0.2
        assert config.dynamic.wave_gesture_fraction == 0.4
        assert config.matcher.require_finger_count_match is False
        assert config.sensor.min_reliable_depth == 600
        assert base.dynamic.wave_swing_cutoff == 0.12

    def test_apply_overrides_validates(self):
        """Test that an invalid override fails fast."""
        with pytest.raises(ValueError):
            apply_overrides(Config(), [parse_override('dynamic.buffer_capacity=0')])

    def test_cli_overrides(self):
        """Test that the command line applies --set overrides."""
        with pytest.raises(ValueError):
            main(['--set', 'dynamic.buffer_capacity=0'])


class TestLogging:
    """Tests for logging helpers."""

    def test_log_file(self, tmp_path):
        """Test that setup_logging writes to a log file."""
        log_file = tmp_path / 'logs' / 'run.log'
        setup_logging(level=logging.INFO, log_file=str(log_file))

        get_logger('depth_gestures.test').info("hello")
        for handler in logging.getLogger().handlers:
            handler.flush()

        assert log_file.exists()
        assert "hello" in log_file.read_text()

    def test_progress_logger(self):
        """Test progress counting."""
        progress = ProgressLogger('depth_gestures.test', total=3, log_interval=1)
        progress.start()
        for _ in range(3):
            progress.update()
        progress.finish()
        assert progress.current == 3


class TestCatalog:
    """Tests for template catalog loading."""

    def write_catalog(self, tmp_path, dynamic):
        images = tmp_path / 'templates'
        images.mkdir()
        cv2.imwrite(str(images / 'open.png'), draw_hand().astype(np.uint8) * 255)
        cv2.imwrite(str(images / 'fist.png'),
                    draw_hand(finger_angles=FIST_ANGLES).astype(np.uint8) * 255)

        path = tmp_path / 'catalog.yaml'
        with open(path, 'w') as f:
            yaml.safe_dump({'templates': {
                'static': [
                    {'name': 'Open hand', 'image': 'templates/open.png', 'fingers': 5},
                    {'name': 'Fist', 'image': 'templates/fist.png', 'fingers': 0},
                ],
                'dynamic': dynamic,
            }}, f)
        return path

    def test_load_catalog(self, tmp_path):
        """Test loading static and dynamic templates."""
        path = self.write_catalog(tmp_path, [
            {'name': 'Hello!', 'kind': 'wave', 'gestures': ['Open hand']},
            {'name': 'Flash for attention', 'kind': 'alternation', 'gestures': ['Open hand', 'Fist']},
        ])

        catalog = load_catalog(path)

        assert [t.name for t in catalog.static] == ['Open hand', 'Fist']
        assert catalog.static[0].finger_count == 5
        assert catalog.dynamic[1].kind is DynamicGestureKind.ALTERNATION
        assert catalog.dynamic[1].gestures[1] is catalog.get('Fist')

    def test_unknown_reference(self, tmp_path):
        """Test that a dynamic entry must reference known templates."""
        path = self.write_catalog(tmp_path, [
            {'name': 'Hello!', 'kind': 'wave', 'gestures': ['Peace']},
        ])
        with pytest.raises(ValueError):
            load_catalog(path)

    def test_bad_arity(self, tmp_path):
        """Test that catalog entries are arity checked."""
        path = self.write_catalog(tmp_path, [
            {'name': 'Hello!', 'kind': 'wave', 'gestures': ['Open hand', 'Fist']},
        ])
        with pytest.raises(ValueError):
            load_catalog(path)

    def test_missing_file(self, tmp_path):
        """Test that a missing catalog raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_catalog(tmp_path / 'missing.yaml')

    def test_rendered_catalog(self, tmp_path):
        """Test the rendered catalog against the one documented in default.yaml."""
        from scripts.render_templates import render_templates

        catalog_path = render_templates(tmp_path)
        with open(catalog_path) as f:
            rendered = yaml.safe_load(f)

        lines = (REPO_ROOT / 'configs' / 'default.yaml').read_text().splitlines()
        start = lines.index('# templates:')
        documented = []
        for line in lines[start:]:
            if not line.startswith('#'):
                break
            documented.append(line[2:])
        assert yaml.safe_load('\n'.join(documented)) == rendered

        catalog = load_catalog(catalog_path)
        assert catalog.get("Rock'n'roll!").finger_count == 3
        assert len(catalog.dynamic) == 3


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
