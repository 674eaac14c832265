"""
Mask Heuristic Tests
====================

Tests for hue regions, hue averaging and the mask score.
"""

import numpy as np
import pytest

from maskscan.models.landmarks import HueRegion, Landmark, LandmarkIndex, MaskScore, landmarks_from_points
from maskscan.scoring.heuristic import MASK_REGIONS, MaskHeuristicScorer, average_hue, hue_channel


GREEN = (0, 255, 0)
BLUE = (0, 0, 255)


def _frame(color, size=224):
    frame = np.zeros((size, size, 3), dtype=np.uint8)
    frame[:] = color
    return frame


def _green_over_blue(size=224):
    frame = _frame(BLUE, size)
    frame[: size // 2] = GREEN
    return frame


class TestHueChannel:
    """Tests for RGB -> hue degrees."""

    def test_primary_hues(self):
        frame = np.array([[[255, 0, 0], [0, 255, 0], [0, 0, 255]]], dtype=np.uint8)

        hue = hue_channel(frame)

        np.testing.assert_allclose(hue[0], [0.0, 120.0, 240.0], atol=0.01)

    def test_rejects_gray_image(self):
        with pytest.raises(ValueError):
            hue_channel(np.zeros((4, 4), dtype=np.uint8))


class TestAverageHue:
    """Tests for the sampled pixel window."""

    def test_rows_extend_one_pixel_both_ways(self):
        """Rows min_y - 1 and max_y + 1 are included."""
        hue = np.zeros((20, 20), dtype=np.float32)
        hue[4, 5] = 90.0
        hue[11, 5] = 90.0

        # 2 columns x 8 rows (4..11)
        assert average_hue(hue, HueRegion(5, 7, 5, 10)) == pytest.approx(180.0 / 16)

    def test_max_x_column_excluded(self):
        hue = np.zeros((20, 20), dtype=np.float32)
        hue[:, 7] = 300.0

        assert average_hue(hue, HueRegion(5, 7, 5, 10)) == 0.0

    def test_clips_to_frame(self):
        hue = np.full((10, 10), 60.0, dtype=np.float32)

        assert average_hue(hue, HueRegion(-5, 3, -5, 2)) == pytest.approx(60.0)

    def test_empty_when_outside(self):
        hue = np.zeros((10, 10), dtype=np.float32)

        assert average_hue(hue, HueRegion(20, 30, 0, 5)) is None

    def test_empty_when_zero_width(self):
        hue = np.zeros((10, 10), dtype=np.float32)

        assert average_hue(hue, HueRegion(4, 4, 0, 5)) is None


class TestHueRegion:
    """Tests for region construction."""

    def test_spanning_normalizes_order(self):
        region = HueRegion.spanning(Landmark(54, 144, 160), Landmark(12, 184, 150))

        assert region == HueRegion(min_x=144, max_x=184, min_y=150, max_y=160)

    def test_unnormalized_rejected(self):
        with pytest.raises(ValueError):
            HueRegion(min_x=10, max_x=5, min_y=0, max_y=1)


class TestMaskHeuristicScorer:
    """Tests for the score formula and its degenerate cases."""

    def test_regions_from_landmarks(self, face_landmarks):
        regions = MaskHeuristicScorer().hue_regions(face_landmarks)

        assert regions["eyes_area"] == HueRegion(90, 130, 80, 95)
        assert regions["left_mouth"] == HueRegion(40, 80, 150, 160)
        assert regions["right_mouth"] == HueRegion(144, 184, 150, 160)

    def test_uniform_face_scores_100(self, face_landmarks):
        """Same hue everywhere means no covering."""
        score = MaskHeuristicScorer().score(face_landmarks, _frame(GREEN))

        assert score.is_defined
        assert score.value == pytest.approx(100.0)

    def test_green_eyes_blue_mouth(self, face_landmarks):
        """eyes=120, mouth=240 -> 100 - 120/240*100 = 50."""
        score = MaskHeuristicScorer().score(face_landmarks, _green_over_blue())

        assert score.eyes_hue == pytest.approx(120.0, abs=0.01)
        assert score.left_mouth_hue == pytest.approx(240.0, abs=0.01)
        assert score.right_mouth_hue == pytest.approx(240.0, abs=0.01)
        assert score.value == pytest.approx(50.0, abs=0.01)
        assert str(score) == "50.00"

    def test_hue_distance_is_not_circular(self, face_landmarks):
        """Hues either side of 0 degrees count as far apart."""
        frame = _frame((255, 43, 0))
        frame[:112] = (255, 0, 43)

        score = MaskHeuristicScorer().score(face_landmarks, frame)

        assert score.eyes_hue > 340.0
        assert score.left_mouth_hue < 20.0
        assert score.value < 10.0

    def test_zero_hue_everywhere_is_undefined(self, face_landmarks):
        """Gray frames have hue 0 in every region; no division fault."""
        score = MaskHeuristicScorer().score(face_landmarks, _frame((90, 90, 90)))

        assert not score.is_defined
        assert score.value is None
        assert "zero hue" in score.reason
        assert str(score) == "undefined"

    def test_region_outside_frame_is_undefined(self, face_points):
        points = list(face_points)
        points[21] = (300, 300)
        points[42] = (320, 310)

        score = MaskHeuristicScorer().score(landmarks_from_points(points), _frame(GREEN))

        assert not score.is_defined
        assert "eyes_area" in score.reason
        assert score.eyes_hue is None

    def test_swapped_pair_gives_same_score(self, face_points):
        """Which landmark of a pair comes first does not matter."""
        swapped = list(face_points)
        swapped[21], swapped[42] = face_points[42], face_points[21]
        swapped[54], swapped[12] = face_points[12], face_points[54]
        frame = _green_over_blue()
        scorer = MaskHeuristicScorer()

        original = scorer.score(landmarks_from_points(face_points), frame)
        mirrored = scorer.score(landmarks_from_points(swapped), frame)

        assert scorer.hue_regions(landmarks_from_points(swapped)) == scorer.hue_regions(
            landmarks_from_points(face_points)
        )
        assert mirrored.value == original.value

    def test_zero_width_region_is_undefined(self, face_points):
        points = list(face_points)
        points[4] = (80, 150)

        score = MaskHeuristicScorer().score(landmarks_from_points(points), _frame(GREEN))

        assert not score.is_defined
        assert "left_mouth" in score.reason

    def test_score_all_matches_single_scores(self, face_detection):
        frame = _green_over_blue()
        scorer = MaskHeuristicScorer()

        scores = scorer.score_all([face_detection, face_detection], frame)

        single = scorer.score(face_detection.landmarks, frame)
        assert [s.value for s in scores] == [single.value, single.value]
        assert scorer.score_all([], frame) == []

    def test_wrong_landmark_count(self, face_landmarks):
        with pytest.raises(ValueError):
            MaskHeuristicScorer().score(face_landmarks[:10], _frame(GREEN))

    def test_named_landmarks_span_the_regions(self):
        """Every named landmark is an endpoint of some hue region."""
        endpoints = {index for pair in MASK_REGIONS.values() for index in pair}

        assert endpoints == set(LandmarkIndex)

    def test_missing_region_definition(self):
        with pytest.raises(ValueError, match="eyes_area"):
            MaskHeuristicScorer(regions={"left_mouth": (4, 48), "right_mouth": (54, 12)})


class TestMaskScore:
    """Tests for the score value object."""

    def test_undefined_sentinel(self):
        score = MaskScore.undefined("empty region: left_mouth", eyes_hue=120.0)

        assert score.value is None
        assert score.eyes_hue == 120.0
        assert score.reason == "empty region: left_mouth"
