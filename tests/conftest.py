"""
Test Configuration
==================

Pytest fixtures and test configuration for MaskScan.

YUV reference colors (BT.601 limited range, fixed-point conversion):
    (128, 128, 128) -> RGB (130, 130, 130)
    (145,  54,  34) -> RGB (0, 255, 0)    hue 120
    ( 41, 240, 110) -> RGB (0, 0, 255)    hue 240
    ( 81,  90, 240) -> RGB (254, 0, 0)    hue 0
"""

import threading
from typing import List, Optional, Tuple

import numpy as np
import pytest

from maskscan.detection.engine import canonical_landmarks
from maskscan.models.landmarks import Detection, landmarks_from_points
from maskscan.stream.frame import Plane, RawFrame


YUV_GRAY = (128, 128, 128)
YUV_GREEN = (145, 54, 34)
YUV_BLUE = (41, 240, 110)
YUV_RED = (81, 90, 240)


# =============================================================================
# Frame factories
# =============================================================================

class ReleaseCounter:
    """on_release callback that counts calls."""

    def __init__(self) -> None:
        self.count = 0

    def __call__(self) -> None:
        self.count += 1


def i420_planes(
    y: np.ndarray,
    u: np.ndarray,
    v: np.ndarray,
) -> Tuple[Plane, Plane, Plane]:
    """Wrap full-resolution Y and quarter-resolution U/V arrays as planes."""
    return (
        Plane(data=np.ascontiguousarray(y).reshape(-1), row_stride=y.shape[1]),
        Plane(data=np.ascontiguousarray(u).reshape(-1), row_stride=u.shape[1]),
        Plane(data=np.ascontiguousarray(v).reshape(-1), row_stride=v.shape[1]),
    )


def uniform_i420(
    width: int,
    height: int,
    yuv: Tuple[int, int, int],
    frame_index: int = 0,
    on_release=None,
) -> RawFrame:
    cw, ch = (width + 1) // 2, (height + 1) // 2
    y = np.full((height, width), yuv[0], dtype=np.uint8)
    u = np.full((ch, cw), yuv[1], dtype=np.uint8)
    v = np.full((ch, cw), yuv[2], dtype=np.uint8)
    return RawFrame(
        planes=i420_planes(y, u, v),
        width=width,
        height=height,
        frame_index=frame_index,
        on_release=on_release,
    )


def split_i420(
    width: int,
    height: int,
    top: Tuple[int, int, int],
    bottom: Tuple[int, int, int],
    frame_index: int = 0,
    on_release=None,
) -> RawFrame:
    """Frame whose rows above height // 2 are `top` and the rest `bottom`."""
    half = height // 2
    cw, ch = (width + 1) // 2, (height + 1) // 2
    y = np.empty((height, width), dtype=np.uint8)
    u = np.empty((ch, cw), dtype=np.uint8)
    v = np.empty((ch, cw), dtype=np.uint8)
    for plane, rows, index in ((y, half, 0), (u, half // 2, 1), (v, half // 2, 2)):
        plane[:rows] = top[index]
        plane[rows:] = bottom[index]
    return RawFrame(
        planes=i420_planes(y, u, v),
        width=width,
        height=height,
        frame_index=frame_index,
        on_release=on_release,
    )


@pytest.fixture
def release_counter():
    """Fresh on_release counter."""
    return ReleaseCounter()


@pytest.fixture
def make_uniform_frame():
    """Factory for single-color planar I420 frames."""
    return uniform_i420


@pytest.fixture
def make_split_frame():
    """Factory for two-color (top/bottom) planar I420 frames."""
    return split_i420


# =============================================================================
# Landmarks
# =============================================================================

@pytest.fixture
def face_points() -> List[Tuple[float, float]]:
    """
    68 landmark points in a 224 frame with the scoring points pinned.

    Eyes area spans rows 80-95 (upper half), both mouth regions rows
    150-160 (lower half).
    """
    points = list(canonical_landmarks(224))
    points[21] = (90, 80)
    points[42] = (130, 95)
    points[4] = (40, 150)
    points[48] = (80, 160)
    points[54] = (144, 160)
    points[12] = (184, 150)
    return points


@pytest.fixture
def face_landmarks(face_points):
    return landmarks_from_points(face_points)


@pytest.fixture
def face_detection(face_landmarks) -> Detection:
    return Detection(left=40, top=60, right=184, bottom=200, landmarks=face_landmarks)


# =============================================================================
# Detector / presenter stubs
# =============================================================================

class BlockingDetector:
    """Detector that parks inside detect() until unblocked."""

    def __init__(self, detections: Optional[List[Detection]] = None) -> None:
        self.detections = detections or []
        self.entered = threading.Event()
        self.unblock = threading.Event()
        self.call_count = 0
        self.release_count = 0

    def detect(self, image):
        self.call_count += 1
        self.entered.set()
        self.unblock.wait(timeout=10.0)
        return list(self.detections)

    def release(self) -> None:
        self.release_count += 1


class FailingDetector:
    """Detector whose detect() always raises."""

    def __init__(self) -> None:
        self.call_count = 0
        self.release_count = 0

    def detect(self, image):
        self.call_count += 1
        raise RuntimeError("model exploded")

    def release(self) -> None:
        self.release_count += 1


class RecordingPresenter:
    """Presenter that records every show() call."""

    def __init__(self) -> None:
        self.frames: List[np.ndarray] = []
        self.statuses: List[str] = []
        self.released = False
        self.shown = threading.Event()

    def show(self, frame, status) -> None:
        self.frames.append(frame.copy())
        self.statuses.append(status)
        self.shown.set()

    def release(self) -> None:
        self.released = True


@pytest.fixture
def blocking_detector():
    detector = BlockingDetector()
    yield detector
    detector.unblock.set()


@pytest.fixture
def failing_detector():
    return FailingDetector()


@pytest.fixture
def recording_presenter():
    return RecordingPresenter()
