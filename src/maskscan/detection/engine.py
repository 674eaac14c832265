"""
Landmark Detector Engine
========================

Detector abstraction for the inference worker.

This module provides the LandmarkDetector protocol and the
MockLandmarkDetector implementation used when no model is available.

Design Rules:
    - Takes the normalized RGB frame (N, N, 3) directly
    - Returns zero or more Detections, each with exactly 68 landmarks
    - detect() is synchronous and may block arbitrarily
    - release() frees the detector; it is called at most once, by the
      DetectionInvoker, after every in-flight detect() has returned
"""

import logging
import math
from typing import List, Optional, Protocol, Sequence, Tuple

import numpy as np

from maskscan.models.landmarks import Detection, landmarks_from_points


logger = logging.getLogger(__name__)


class LandmarkDetector(Protocol):
    """
    Protocol for face-landmark detector backends.

    This interface is implemented by:
        - MockLandmarkDetector (deterministic, for testing and demos)
        - DlibLandmarkDetector (dlib HOG detector + 68-point predictor)
    """

    def detect(self, image: np.ndarray) -> List[Detection]:
        """
        Detect faces and their landmarks.

        Args:
            image: Normalized RGB frame (N, N, 3), uint8

        Returns:
            Detections ordered as the backend reports them
        """
        ...

    def release(self) -> None:
        """Free detector resources."""
        ...


def _ellipse_points(
    cx: float, cy: float, rx: float, ry: float, angles: Sequence[float]
) -> List[Tuple[float, float]]:
    return [(cx + rx * math.cos(a), cy + ry * math.sin(a)) for a in angles]


def canonical_landmarks(size: int) -> List[Tuple[float, float]]:
    """
    Synthetic frontal face in the 68-point layout, centered in a size x size frame.

    Not anatomically exact; only the ordering and rough placement matter.
    """
    cx = size / 2.0
    face_w = 0.30 * size
    jaw_y = 0.45 * size
    jaw_h = 0.35 * size
    brow_y = 0.35 * size
    eye_y = 0.42 * size
    mouth_y = 0.70 * size

    points: List[Tuple[float, float]] = []

    # Jaw 0-16, image left ear to image right ear through the chin
    points += [
        (cx - face_w * math.cos(math.pi * i / 16), jaw_y + jaw_h * math.sin(math.pi * i / 16))
        for i in range(17)
    ]

    # Eyebrows 17-21 and 22-26, outer to inner then inner to outer
    points += [(cx - face_w * (0.80 - 0.1625 * i), brow_y) for i in range(5)]
    points += [(cx + face_w * (0.15 + 0.1625 * i), brow_y) for i in range(5)]

    # Nose bridge 27-30 then base 31-35
    points += [(cx, 0.42 * size + 0.05 * size * i) for i in range(4)]
    points += [(cx + face_w * 0.075 * (i - 2), 0.62 * size) for i in range(5)]

    # Eyes: outer corner, two top points, inner corner, two bottom points
    eye_rx = 0.15 * face_w
    eye_ry = 0.03 * size
    left_eye = _ellipse_points(
        cx - 0.45 * face_w, eye_y, eye_rx, eye_ry,
        [math.pi, 4 * math.pi / 3, 5 * math.pi / 3, 0.0, math.pi / 3, 2 * math.pi / 3],
    )
    right_eye = _ellipse_points(
        cx + 0.45 * face_w, eye_y, eye_rx, eye_ry,
        [math.pi, 4 * math.pi / 3, 5 * math.pi / 3, 0.0, math.pi / 3, 2 * math.pi / 3],
    )
    points += left_eye
    points += right_eye

    # Outer lip 48-59 clockwise from the left corner, inner lip 60-67
    mouth_rx = 0.35 * face_w
    points += _ellipse_points(
        cx, mouth_y, mouth_rx, 0.05 * size,
        [math.pi + math.pi * i / 6 for i in range(12)],
    )
    points += _ellipse_points(
        cx, mouth_y, 0.7 * mouth_rx, 0.02 * size,
        [math.pi + math.pi * i / 4 for i in range(8)],
    )

    return points


class MockLandmarkDetector:
    """
    Deterministic mock detector.

    Returns the same detection(s) for every frame, either from explicit
    landmark points or from the synthetic canonical face.

    Attributes:
        call_count: Number of detect() calls
        released: Whether release() was called
    """

    def __init__(
        self,
        input_size: int = 224,
        points: Optional[Sequence[Tuple[float, float]]] = None,
        bbox: Optional[Tuple[int, int, int, int]] = None,
        face_count: int = 1,
    ) -> None:
        """
        Initialize mock detector.

        Args:
            input_size: Side of the frames it will receive
            points: 68 (x, y) landmark positions (canonical face if None)
            bbox: (left, top, right, bottom); derived from points if None
            face_count: Detections returned per frame (0 = no face)
        """
        points = list(points) if points is not None else canonical_landmarks(input_size)
        landmarks = landmarks_from_points(points)

        if bbox is None:
            xs = [p.x for p in landmarks]
            ys = [p.y for p in landmarks]
            bbox = (min(xs), min(ys), max(xs), max(ys))

        self._detection = Detection(*bbox, landmarks=landmarks)
        self.face_count = face_count
        self.call_count = 0
        self.released = False

        logger.info(
            f"MockLandmarkDetector initialized: input_size={input_size}, "
            f"faces={face_count}"
        )

    def detect(self, image: np.ndarray) -> List[Detection]:
        if self.released:
            raise RuntimeError("MockLandmarkDetector used after release")
        self.call_count += 1
        return [self._detection] * self.face_count

    def release(self) -> None:
        self.released = True
