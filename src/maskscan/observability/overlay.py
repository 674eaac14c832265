"""
Overlay Annotation
==================

Draws detection results onto the normalized frame in place.

Artifacts:
    - Face bounding box (green, 2 px)
    - Mask score text near the bottom of the frame

Purely descriptive: annotation never influences scoring.
"""

import logging
from typing import Optional, Sequence, Tuple

import cv2
import numpy as np

from maskscan.models.landmarks import Detection, MaskScore


logger = logging.getLogger(__name__)

LANDMARK_COLOR: Tuple[int, int, int] = (0, 255, 0)
STROKE_WIDTH = 2


class OverlayAnnotator:
    """
    In-place RGB frame annotator.

    Attributes:
        color: RGB stroke color
        thickness: Stroke width in pixels
        draw_landmarks: Also draw every landmark point
    """

    def __init__(
        self,
        color: Tuple[int, int, int] = LANDMARK_COLOR,
        thickness: int = STROKE_WIDTH,
        draw_landmarks: bool = False,
    ) -> None:
        self.color = color
        self.thickness = thickness
        self.draw_landmarks = draw_landmarks

    def annotate(
        self,
        frame: np.ndarray,
        detection: Detection,
        score: Optional[MaskScore] = None,
    ) -> None:
        """Draw one detection (and its score) onto frame."""
        cv2.rectangle(
            frame,
            (int(detection.left), int(detection.top)),
            (int(detection.right), int(detection.bottom)),
            self.color,
            self.thickness,
        )

        if self.draw_landmarks:
            for point in detection.landmarks:
                cv2.circle(frame, (point.x, point.y), 2, self.color, 1)

        if score is not None:
            height, width = frame.shape[:2]
            cv2.putText(
                frame,
                str(score),
                (width // 3, height - 5),
                cv2.FONT_HERSHEY_SIMPLEX,
                0.5,
                self.color,
                1,
                cv2.LINE_AA,
            )

    def annotate_all(
        self,
        frame: np.ndarray,
        detections: Sequence[Detection],
        scores: Sequence[MaskScore],
    ) -> None:
        """Draw every detection with its score; scores must already be computed."""
        for detection, score in zip(detections, scores):
            self.annotate(frame, detection, score)
