"""Tests for the frame data model and frame buffer."""

import threading

import pytest
import numpy as np
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from depth_gestures.data.frame import (
    FrameRecord, HandSide, Joint, JointSet, TrackingState, NOT_TRACKED_JOINT
)
from depth_gestures.data.frame_buffer import FrameBuffer
from depth_gestures.data.results import Detection, DetectionStatus


def make_record(gesture=None, offset=(0.1, -0.3), elbow_state=TrackingState.TRACKED):
    """Right-hand record with elbow - hand equal to offset."""
    hand = (0.0, 0.5, 2.0)
    elbow = (hand[0] + offset[0], hand[1] + offset[1], 2.0)
    joints = JointSet({
        'hand': Joint(hand),
        'elbow': Joint(elbow, elbow_state),
    })
    return FrameRecord(right_joints=joints, right_gesture=gesture)


class TestHandSide:
    """Tests for HandSide parsing."""

    def test_parse_strings(self):
        """Test case-insensitive parsing."""
        assert HandSide.parse('Left') is HandSide.LEFT
        assert HandSide.parse('right') is HandSide.RIGHT
        assert HandSide.parse(HandSide.RIGHT) is HandSide.RIGHT

    def test_parse_invalid(self):
        """Test that unknown sides fail fast."""
        with pytest.raises(ValueError):
            HandSide.parse('Middle')
        with pytest.raises(ValueError):
            HandSide.parse(1)


class TestJointSet:
    """Tests for JointSet."""

    def test_missing_joint_not_tracked(self):
        """Test that a missing joint behaves as NOT_TRACKED."""
        joints = JointSet({'hand': Joint((0.0, 0.0, 1.0))})
        assert joints['elbow'] is NOT_TRACKED_JOINT
        assert joints.is_missing('elbow')
        assert joints.is_tracked('hand')
        assert 'elbow' not in joints

    def test_first_tracked(self):
        """Test first tracked lookup skips inferred joints."""
        joints = JointSet({
            'shoulder': Joint((0.0, 0.0, 2.5), TrackingState.INFERRED),
            'head': Joint((0.0, 0.3, 2.4)),
        })
        assert joints.first_tracked('shoulder', 'head', 'spine').depth_mm == 2400
        assert JointSet().first_tracked('shoulder') is None

    def test_depth_mm_clamps_negative(self):
        """Test that negative depths clamp to zero."""
        assert Joint((0.0, 0.0, -1.0)).depth_mm == 0


class TestDetection:
    """Tests for Detection results."""

    def test_found(self):
        """Test present result."""
        result = Detection.found(3)
        assert result
        assert result.unwrap() == 3
        assert result.status is DetectionStatus.DETECTED

    def test_absent(self):
        """Test absent results are falsy and carry a reason."""
        result = Detection.no_detection("hand not tracked")
        assert not result
        assert result.reason == "hand not tracked"
        with pytest.raises(ValueError):
            result.unwrap()


class TestFrameBuffer:
    """Tests for FrameBuffer class."""

    def test_invalid_capacity(self):
        """Test that a non-positive capacity is rejected."""
        with pytest.raises(ValueError):
            FrameBuffer(0)

    def test_empty(self):
        """Test empty buffer accessors."""
        buffer = FrameBuffer(35)
        assert len(buffer) == 0
        assert buffer.latest() is None
        assert buffer.oldest() is None
        assert buffer.min_history == 17

    def test_fifo_eviction(self):
        """Test that the oldest record is evicted first."""
        buffer = FrameBuffer(35)
        for i in range(40):
            buffer.push(make_record(f"g{i}"))

        assert len(buffer) == 35
        assert buffer.oldest().right_gesture == "g5"
        assert buffer.latest().right_gesture == "g39"
        assert [r.right_gesture for r in buffer.snapshot()][:2] == ["g5", "g6"]

    def test_insufficient_history(self):
        """Test that features need at least capacity // 2 records."""
        buffer = FrameBuffer(35)
        for _ in range(16):
            buffer.push(make_record("Open hand"))
        assert buffer.get_dynamic_features('Right') is None

        buffer.push(make_record("Open hand"))
        features = buffer.get_dynamic_features('Right')
        assert features is not None
        assert len(features) == 17

    def test_side_validated_first(self):
        """Test that an invalid side raises even on an empty buffer."""
        buffer = FrameBuffer(35)
        with pytest.raises(ValueError):
            buffer.get_dynamic_features('Both')

    def test_features(self):
        """Test gesture labels and elbow offsets."""
        buffer = FrameBuffer(4)
        buffer.push(make_record("Open hand", offset=(0.1, -0.3)))
        buffer.push(make_record(None, offset=(-0.2, -0.1)))
        buffer.push(make_record("Fist", offset=(0.5, 0.5), elbow_state=TrackingState.NOT_TRACKED))

        features = buffer.get_dynamic_features(HandSide.RIGHT)

        assert features.recognized_gestures == ["Open hand", "", "Fist"]
        assert features.hand_elbow_offsets.shape == (3, 2)
        assert np.allclose(features.hand_elbow_offsets[0], [0.1, -0.3])
        assert np.allclose(features.hand_elbow_offsets[1], [-0.2, -0.1])
        assert np.allclose(features.hand_elbow_offsets[2], [0.0, 0.0])
        assert features.count("Open hand") == 1

    def test_other_side_is_independent(self):
        """Test that left features ignore right-hand data."""
        buffer = FrameBuffer(2)
        buffer.push(make_record("Open hand"))
        features = buffer.get_dynamic_features('Left')
        assert features.recognized_gestures == [""]
        assert np.allclose(features.hand_elbow_offsets, 0.0)

    def test_concurrent_push_and_read(self):
        """Test one writer and one reader running at the same time."""
        buffer = FrameBuffer(35)
        errors = []

        def writer():
            for i in range(2000):
                buffer.push(make_record("Open hand" if i % 2 else "Fist"))

        def reader():
            try:
                for _ in range(500):
                    features = buffer.get_dynamic_features('Right')
                    if features is not None:
                        assert len(features) <= 35
                        assert features.hand_elbow_offsets.shape == (len(features), 2)
            except Exception as e:  # surfaced through the list below
                errors.append(e)

        threads = [threading.Thread(target=writer), threading.Thread(target=reader)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert not errors
        assert len(buffer) == 35


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
