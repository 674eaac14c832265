"""
Frame Ingestor Tests
====================

Tests for admission, buffer lifecycle and conversion on the camera thread.
"""

import numpy as np
import pytest

from maskscan.imaging.geometry import DisplayOrientation
from maskscan.observability.preview import PreviewWriter
from maskscan.stream.admission import AdmissionState
from maskscan.stream.frame import Plane, RawFrame
from maskscan.stream.ingestor import FrameIngestor, IngestStatus


class TestOnFrame:
    """Tests for the per-callback outcome."""

    def test_empty_callback(self):
        ingestor = FrameIngestor(input_size=32)

        outcome = ingestor.on_frame(None)

        assert outcome.status is IngestStatus.EMPTY
        assert ingestor.metrics.frames_empty == 1
        assert ingestor.guard.state is AdmissionState.IDLE

    def test_accepts_and_normalizes(self, make_uniform_frame, release_counter):
        ingestor = FrameIngestor(input_size=32)
        raw = make_uniform_frame(64, 48, (128, 128, 128), frame_index=7, on_release=release_counter)

        outcome = ingestor.on_frame(raw)

        assert outcome.status is IngestStatus.ACCEPTED
        assert outcome.frame.frame_index == 7
        assert outcome.frame.normalized.shape == (32, 32, 3)
        assert np.all(outcome.frame.normalized == 130)
        assert release_counter.count == 1
        assert ingestor.metrics.last_frame_index == 7

    def test_without_consumer_guard_returns_to_idle(self, make_uniform_frame):
        ingestor = FrameIngestor(input_size=32)

        ingestor.on_frame(make_uniform_frame(16, 16, (128, 128, 128)))

        assert ingestor.guard.state is AdmissionState.IDLE
        assert not ingestor.slot.owned

    def test_drops_while_busy(self, make_uniform_frame, release_counter):
        """A frame arriving during processing is dropped and released."""
        ingestor = FrameIngestor(input_size=32)
        held = ingestor.guard.try_acquire()

        outcome = ingestor.on_frame(make_uniform_frame(16, 16, (128, 128, 128), on_release=release_counter))

        assert outcome.status is IngestStatus.DROPPED
        assert release_counter.count == 1
        assert ingestor.metrics.frames_dropped == 1
        assert ingestor.slot.allocation_count == 0
        held.release()

    def test_conversion_failure_resets_admission(self, release_counter):
        """A truncated plane fails the frame without wedging the guard."""
        ingestor = FrameIngestor(input_size=32)
        raw = RawFrame(
            planes=(
                Plane(np.zeros(10, dtype=np.uint8), row_stride=16),
                Plane(np.zeros(64, dtype=np.uint8), row_stride=8),
                Plane(np.zeros(64, dtype=np.uint8), row_stride=8),
            ),
            width=16,
            height=16,
            on_release=release_counter,
        )

        outcome = ingestor.on_frame(raw)

        assert outcome.status is IngestStatus.FAILED
        assert "too short" in outcome.error
        assert release_counter.count == 1
        assert ingestor.guard.state is AdmissionState.IDLE
        assert not ingestor.slot.owned
        assert ingestor.metrics.frames_failed == 1

    def test_recovers_after_failure(self, make_uniform_frame):
        ingestor = FrameIngestor(input_size=32)
        bad = RawFrame(
            planes=(
                Plane(np.zeros(4, dtype=np.uint8), row_stride=16),
                Plane(np.zeros(64, dtype=np.uint8), row_stride=8),
            ),
            width=16,
            height=16,
        )

        assert ingestor.on_frame(bad).status is IngestStatus.FAILED
        assert ingestor.on_frame(make_uniform_frame(16, 16, (128, 128, 128))).status is IngestStatus.ACCEPTED


class TestHandoff:
    """Tests for slot hand-off to a consumer."""

    def test_consumer_owns_slot_until_release(self, make_uniform_frame):
        received = []
        ingestor = FrameIngestor(input_size=32, on_ready=lambda slot, frame: received.append((slot, frame)))

        first = ingestor.on_frame(make_uniform_frame(16, 16, (128, 128, 128), frame_index=1))
        second = ingestor.on_frame(make_uniform_frame(16, 16, (128, 128, 128), frame_index=2))

        assert first.status is IngestStatus.ACCEPTED
        assert second.status is IngestStatus.DROPPED
        assert ingestor.slot.owned

        slot, frame = received[0]
        assert frame.normalized is slot.normalized
        slot.release()

        assert ingestor.guard.state is AdmissionState.IDLE
        third = ingestor.on_frame(make_uniform_frame(16, 16, (128, 128, 128), frame_index=3))
        assert third.status is IngestStatus.ACCEPTED

    def test_consumer_failure_releases_slot(self, make_uniform_frame):
        def broken(slot, frame):
            raise RuntimeError("executor gone")

        ingestor = FrameIngestor(input_size=32, on_ready=broken)

        outcome = ingestor.on_frame(make_uniform_frame(16, 16, (128, 128, 128)))

        assert outcome.status is IngestStatus.FAILED
        assert ingestor.guard.state is AdmissionState.IDLE


class TestBuffers:
    """Tests for buffer reuse and plane layouts."""

    def test_allocates_once_per_resolution(self, make_uniform_frame):
        ingestor = FrameIngestor(input_size=32)

        ingestor.on_frame(make_uniform_frame(64, 48, (128, 128, 128)))
        ingestor.on_frame(make_uniform_frame(64, 48, (128, 128, 128)))
        assert ingestor.allocation_count == 1

        ingestor.on_frame(make_uniform_frame(48, 64, (128, 128, 128)))
        assert ingestor.allocation_count == 2
        assert ingestor.slot.packed.shape == (64, 48, 3)

    def test_semi_planar_frame(self):
        """Two-plane frames read V one byte after U."""
        width, height = 16, 8
        uv = np.empty(width * height // 2, dtype=np.uint8)
        uv[0::2] = 54
        uv[1::2] = 34
        raw = RawFrame(
            planes=(
                Plane(np.full(width * height, 145, dtype=np.uint8), row_stride=width),
                Plane(uv, row_stride=width, pixel_stride=2),
            ),
            width=width,
            height=height,
        )
        ingestor = FrameIngestor(input_size=8)

        outcome = ingestor.on_frame(raw)

        assert outcome.status is IngestStatus.ACCEPTED
        assert np.all(outcome.frame.normalized == np.array([0, 255, 0], dtype=np.uint8))

    def test_semi_planar_swapped_chroma(self):
        """swap_uv reads interleaved chroma in V/U order."""
        width, height = 16, 8
        vu = np.empty(width * height // 2, dtype=np.uint8)
        vu[0::2] = 34
        vu[1::2] = 54
        raw = RawFrame(
            planes=(
                Plane(np.full(width * height, 145, dtype=np.uint8), row_stride=width),
                Plane(vu, row_stride=width, pixel_stride=2),
            ),
            width=width,
            height=height,
        )
        ingestor = FrameIngestor(input_size=8, swap_uv=True)

        outcome = ingestor.on_frame(raw)

        assert np.all(outcome.frame.normalized == np.array([0, 255, 0], dtype=np.uint8))

    def test_samples_rotation_per_frame(self, make_split_frame):
        """Rotation follows the orientation source at the time of each frame."""
        orientation = DisplayOrientation(640, 480)
        ingestor = FrameIngestor(input_size=16, orientation=orientation)
        green_over_blue = make_split_frame(16, 16, (145, 54, 34), (41, 240, 110))

        upright = ingestor.on_frame(green_over_blue).frame
        assert upright.rotation == 0
        assert tuple(upright.normalized[0, 8]) == (0, 255, 0)

        orientation.resize(480, 640)
        turned = ingestor.on_frame(make_split_frame(16, 16, (145, 54, 34), (41, 240, 110))).frame

        assert turned.rotation == 90
        # Clockwise: the green top half is now the right half
        assert tuple(turned.normalized[8, 15]) == (0, 255, 0)
        assert tuple(turned.normalized[8, 1]) == (0, 0, 255)


class TestPreview:
    """Tests for the debug preview dump."""

    def test_writes_preview(self, tmp_path, make_uniform_frame):
        writer = PreviewWriter(str(tmp_path / "preview"))
        ingestor = FrameIngestor(input_size=16, preview=writer)

        ingestor.on_frame(make_uniform_frame(16, 16, (128, 128, 128), frame_index=3))

        assert (tmp_path / "preview" / "preview_000003.png").is_file()
        assert writer.written_count == 1

    def test_preview_failure_does_not_fail_frame(self, tmp_path, make_uniform_frame):
        blocker = tmp_path / "not_a_dir"
        blocker.write_text("x")
        ingestor = FrameIngestor(input_size=16, preview=PreviewWriter(str(blocker)))

        outcome = ingestor.on_frame(make_uniform_frame(16, 16, (128, 128, 128)))

        assert outcome.status is IngestStatus.ACCEPTED


class TestRawFrame:
    """Tests for camera frame validation."""

    def test_rejects_negative_frame_index(self):
        planes = (
            Plane(np.zeros(16, dtype=np.uint8), row_stride=4),
            Plane(np.zeros(8, dtype=np.uint8), row_stride=4, pixel_stride=2),
        )

        with pytest.raises(ValueError, match="Negative frame index"):
            RawFrame(planes=planes, width=4, height=4, frame_index=-1)
