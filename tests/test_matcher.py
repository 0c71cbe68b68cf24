"""Tests for shape signatures, templates and static matching."""

import cv2
import pytest
import numpy as np
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from depth_gestures.data.frame import HandSide
from depth_gestures.data.results import DetectionStatus
from depth_gestures.data.synthetic import draw_hand, OPEN_HAND_ANGLES, FIST_ANGLES
from depth_gestures.hand.segmenter import HandRegion
from depth_gestures.recognition.matcher import GestureMatcher
from depth_gestures.recognition.shape_signature import ShapeSignature, radial_histogram
from depth_gestures.recognition.templates import GestureTemplate
from depth_gestures.utils.config import MatcherConfig


class TestShapeSignature:
    """Tests for ShapeSignature."""

    def test_empty_mask(self):
        """Test that an empty mask has no signature."""
        assert ShapeSignature.from_mask(np.zeros((50, 50), dtype=bool)) is None

    def test_histogram_normalized(self):
        """Test histogram shape and normalization."""
        sig = ShapeSignature.from_mask(draw_hand(), bins=(8, 8))

        assert sig.histogram.shape == (8, 8)
        assert sig.histogram.dtype == np.float32
        assert np.isclose(sig.histogram.sum(), 1.0, atol=1e-5)

    def test_identical_shapes(self):
        """Test that a shape matches itself."""
        sig = ShapeSignature.from_mask(draw_hand())

        assert sig.contour_score(sig) == pytest.approx(0.0, abs=1e-9)
        assert sig.histogram_score(sig) < 0.01

    def test_translation_invariant(self):
        """Test that translating a mask does not change the signature."""
        mask = draw_hand()
        shifted = np.roll(mask, 5, axis=1)

        a = ShapeSignature.from_mask(mask)
        b = ShapeSignature.from_mask(shifted)

        assert a.contour_score(b) < 1e-3
        assert a.histogram_score(b) < 0.05

    def test_different_shapes(self):
        """Test that an open hand and a fist differ."""
        open_hand = ShapeSignature.from_mask(draw_hand(finger_angles=OPEN_HAND_ANGLES))
        fist = ShapeSignature.from_mask(draw_hand(finger_angles=FIST_ANGLES))

        assert open_hand.contour_score(fist) > 0.01
        assert open_hand.histogram_score(fist) > 0.01

    def test_radial_histogram_empty(self):
        """Test that an empty image has no histogram."""
        assert radial_histogram(np.zeros((10, 10), dtype=np.uint8)) is None


class TestGestureTemplate:
    """Tests for GestureTemplate."""

    def test_invalid_mask_rank(self):
        """Test that a non-2D mask is rejected."""
        with pytest.raises(ValueError):
            GestureTemplate("Bad", np.zeros((4, 4, 3)), 0)

    def test_signature_cached(self):
        """Test that the signature is computed once per bin layout."""
        template = GestureTemplate("Open hand", draw_hand(), 5)
        assert template.signature() is template.signature((8, 8))

    def test_from_image(self, tmp_path):
        """Test loading a template image."""
        mask = draw_hand()
        path = tmp_path / "open.png"
        cv2.imwrite(str(path), mask.astype(np.uint8) * 255)

        template = GestureTemplate.from_image("Open hand", path, 5)

        assert template.finger_count == 5
        assert np.array_equal(template.mask, mask)

    def test_from_image_missing(self, tmp_path):
        """Test that a missing image raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            GestureTemplate.from_image("Missing", tmp_path / "missing.png", 1)


class TestGestureMatcher:
    """Tests for GestureMatcher class."""

    @pytest.fixture
    def matcher(self):
        matcher = GestureMatcher('Right', MatcherConfig())
        matcher.register_all([
            GestureTemplate("Fist", draw_hand(finger_angles=FIST_ANGLES), 0),
            GestureTemplate("Open hand", draw_hand(finger_angles=OPEN_HAND_ANGLES), 5),
        ])
        return matcher

    def test_invalid_side(self):
        """Test that an invalid side fails fast."""
        with pytest.raises(ValueError):
            GestureMatcher('Up')

    def test_templates(self, matcher):
        """Test registered templates in order."""
        assert [t.name for t in matcher.templates] == ["Fist", "Open hand"]

    def test_match_open_hand(self, matcher):
        """Test matching the open hand template."""
        result = matcher.match(draw_hand(), 5)

        assert result
        match = result.value
        assert match.name == "Open hand"
        assert match.side is HandSide.RIGHT
        assert match.rating == pytest.approx(match.contour_score * match.histogram_score)
        assert match.rating <= 0.0125

    def test_match_region(self, matcher):
        """Test matching a translated HandRegion."""
        region = HandRegion(mask=np.roll(draw_hand(finger_angles=FIST_ANGLES), 4, axis=0),
                            bbox=(0, 0, 120, 120))
        result = matcher.match(region, 0)
        assert result.value.name == "Fist"

    def test_no_template_with_finger_count(self, matcher):
        """Test NO_MATCH when no template shows the same finger count."""
        result = matcher.match(draw_hand(), 3)
        assert not result
        assert result.status is DetectionStatus.NO_MATCH

    def test_finger_count_not_required(self):
        """Test matching across finger counts when the filter is disabled."""
        matcher = GestureMatcher('Left', MatcherConfig(require_finger_count_match=False))
        matcher.register(GestureTemplate("Fist", draw_hand(finger_angles=FIST_ANGLES), 0))
        matcher.register(GestureTemplate("Open hand", draw_hand(), 5))

        assert matcher.match(draw_hand(), 3).value.name == "Open hand"

    def test_thresholds_reject(self):
        """Test that candidates above the thresholds are rejected."""
        matcher = GestureMatcher('Right', MatcherConfig(max_rating=-1.0))
        matcher.register(GestureTemplate("Open hand", draw_hand(), 5))

        result = matcher.match(draw_hand(), 5)
        assert result.status is DetectionStatus.NO_MATCH

    def test_contour_cap_rejects(self):
        """Test that the contour cap rejects a candidate whose rating passes."""
        matcher = GestureMatcher('Right', MatcherConfig(
            max_rating=10.0, max_histogram_score=10.0, max_contour_score=-1.0
        ))
        matcher.register(GestureTemplate("Open hand", draw_hand(), 5))

        result = matcher.match(draw_hand(), 5)
        assert result.status is DetectionStatus.NO_MATCH

    def test_histogram_cap_rejects(self):
        """Test that the histogram cap rejects a candidate whose rating passes."""
        matcher = GestureMatcher('Right', MatcherConfig(
            max_rating=10.0, max_contour_score=10.0, max_histogram_score=-1.0
        ))
        matcher.register(GestureTemplate("Open hand", draw_hand(), 5))

        result = matcher.match(draw_hand(), 5)
        assert result.status is DetectionStatus.NO_MATCH

    def test_relaxed_caps_accept(self):
        """Test that the same candidate matches once every cap is relaxed."""
        matcher = GestureMatcher('Right', MatcherConfig(
            max_rating=10.0, max_contour_score=10.0, max_histogram_score=10.0
        ))
        matcher.register(GestureTemplate("Open hand", draw_hand(), 5))

        assert matcher.match(draw_hand(), 5).value.name == "Open hand"

    def test_empty_mask(self, matcher):
        """Test that an empty region does not match."""
        result = matcher.match(np.zeros((120, 120), dtype=bool), 0)
        assert result.status is DetectionStatus.NO_MATCH

    def test_empty_template_skipped(self):
        """Test that a template without a signature never matches."""
        matcher = GestureMatcher('Right')
        matcher.register(GestureTemplate("Blank", np.zeros((120, 120), dtype=bool), 5))
        assert not matcher.match(draw_hand(), 5)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
