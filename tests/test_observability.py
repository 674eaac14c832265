"""
Observability Tests
===================

Tests for overlay annotation, presenters, result models and camera encoding.
"""

import cv2
import numpy as np
import pytest

from maskscan.models.landmarks import MaskScore
from maskscan.models.output import FaceResult, FrameResult
from maskscan.observability.overlay import OverlayAnnotator
from maskscan.presenter import PresenterGroup, StatusPresenter
from maskscan.stream.camera import i420_frame_from_bgr
from maskscan.stream.ingestor import FrameIngestor


class TestOverlayAnnotator:
    """Tests for in-place drawing."""

    def test_draws_green_box(self, face_detection):
        frame = np.zeros((224, 224, 3), dtype=np.uint8)

        OverlayAnnotator().annotate(frame, face_detection)

        assert tuple(frame[60, 100]) == (0, 255, 0)
        assert tuple(frame[120, 100]) == (0, 0, 0)

    def test_draws_score_text_near_bottom(self, face_detection):
        frame = np.zeros((224, 224, 3), dtype=np.uint8)
        detection_only = frame.copy()
        OverlayAnnotator().annotate(detection_only, face_detection)

        OverlayAnnotator().annotate(frame, face_detection, MaskScore(value=87.5))

        text_band = np.any(frame != detection_only, axis=2)
        rows = np.nonzero(text_band)[0]
        cols = np.nonzero(text_band)[1]
        assert rows.size > 0
        assert rows.min() > 224 // 2
        assert cols.min() >= 224 // 3 - 2

    def test_draws_landmarks_when_enabled(self, face_detection):
        plain = np.zeros((224, 224, 3), dtype=np.uint8)
        marked = plain.copy()

        OverlayAnnotator().annotate(plain, face_detection)
        OverlayAnnotator(draw_landmarks=True).annotate(marked, face_detection)

        assert np.count_nonzero(marked) > np.count_nonzero(plain)


class TestPresenters:
    """Tests for result presenters."""

    def test_status_presenter_copies_frame(self):
        presenter = StatusPresenter()
        frame = np.full((8, 8, 3), 10, dtype=np.uint8)

        presenter.show(frame, "Time cost: 0.010 sec")
        frame[:] = 99

        assert presenter.latest_status == "Time cost: 0.010 sec"
        assert np.all(presenter.latest_frame == 10)
        assert presenter.shown_count == 1

    def test_status_presenter_png(self):
        presenter = StatusPresenter()
        assert presenter.encode_png() is None

        presenter.show(np.zeros((8, 8, 3), dtype=np.uint8), "ok")
        encoded = presenter.encode_png()

        decoded = cv2.imdecode(np.frombuffer(encoded, dtype=np.uint8), cv2.IMREAD_COLOR)
        assert decoded.shape == (8, 8, 3)

    def test_group_fans_out(self, recording_presenter):
        status = StatusPresenter()
        group = PresenterGroup([status, recording_presenter])

        group.show(np.zeros((4, 4, 3), dtype=np.uint8), "hello")
        group.release()

        assert status.latest_status == "hello"
        assert recording_presenter.statuses == ["hello"]
        assert status.released and recording_presenter.released


class TestResultModels:
    """Tests for published result models."""

    def test_face_result_from_defined_score(self, face_detection):
        score = MaskScore(value=50.0, eyes_hue=120.0, left_mouth_hue=230.0, right_mouth_hue=250.0)

        face = FaceResult.from_score(face_detection, score)

        assert face.bbox == (40, 60, 184, 200)
        assert face.mask_score == 50.0
        assert face.mouth_hue == pytest.approx(240.0)

    def test_face_result_from_undefined_score(self, face_detection):
        face = FaceResult.from_score(face_detection, MaskScore.undefined("zero hue in all regions"))

        assert face.mask_score is None
        assert face.mouth_hue is None
        assert face.reason == "zero hue in all regions"

    def test_frame_result_json(self, face_detection):
        result = FrameResult(
            frame_index=3,
            timestamp=1700000000.0,
            detection_seconds=0.02,
            status="Time cost: 0.020 sec",
            faces=[FaceResult.from_score(face_detection, MaskScore(value=75.0))],
        )

        payload = result.model_dump(mode="json")

        assert payload["faces"][0]["bbox"] == [40, 60, 184, 200]
        assert payload["detector_error"] is None

    def test_frame_result_rejects_negative_index(self):
        with pytest.raises(ValueError):
            FrameResult(frame_index=-1, timestamp=1.0)


class TestCameraEncoding:
    """Tests for BGR -> I420 frames from OpenCV sources."""

    def test_i420_layout(self):
        bgr = np.zeros((480, 640, 3), dtype=np.uint8)

        raw = i420_frame_from_bgr(bgr, frame_index=5)

        assert (raw.width, raw.height) == (640, 480)
        assert raw.frame_index == 5
        assert [p.data.size for p in raw.planes] == [640 * 480, 320 * 240, 320 * 240]
        assert [p.row_stride for p in raw.planes] == [640, 320, 320]

    def test_odd_size_is_cropped(self):
        raw = i420_frame_from_bgr(np.zeros((11, 13, 3), dtype=np.uint8))

        assert (raw.width, raw.height) == (12, 10)

    def test_colors_survive_ingestion(self):
        """A solid color captured from OpenCV comes back close to itself."""
        bgr = np.zeros((64, 64, 3), dtype=np.uint8)
        bgr[:] = (40, 160, 200)

        outcome = FrameIngestor(input_size=32).on_frame(i420_frame_from_bgr(bgr))

        rgb = outcome.frame.normalized[16, 16].astype(int)
        assert np.all(np.abs(rgb - np.array([200, 160, 40])) <= 6)

    def test_release_callback(self, release_counter):
        raw = i420_frame_from_bgr(np.zeros((4, 4, 3), dtype=np.uint8), on_release=release_counter)

        raw.release()
        raw.release()

        assert raw.released
        assert release_counter.count == 1
