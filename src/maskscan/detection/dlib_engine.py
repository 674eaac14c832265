"""
Dlib Landmark Detector
======================

Production detector using dlib's HOG face detector and the 68-point
shape predictor (shape_predictor_68_face_landmarks.dat).

This engine:
    - Loads the predictor model once at construction
    - Runs the HOG detector on the grayscale normalized frame
    - Predicts 68 landmarks per detected face

Design Rules:
    - Fail fast on a missing model or missing dlib
    - Never called concurrently (the DetectionInvoker serializes calls)
"""

import logging
from pathlib import Path
from typing import List

import cv2
import numpy as np

from maskscan.models.landmarks import Detection, Landmark, LANDMARK_COUNT


logger = logging.getLogger(__name__)


class DlibDetectorError(Exception):
    """Raised when the dlib detector cannot be initialized."""
    pass


class DlibLandmarkDetector:
    """
    dlib-backed LandmarkDetector.

    Attributes:
        model_path: Path to the 68-point shape predictor model
        upsample: HOG detector upsampling passes
    """

    def __init__(self, model_path: str, upsample: int = 0) -> None:
        """
        Initialize dlib detector.

        Args:
            model_path: Path to shape_predictor_68_face_landmarks.dat
            upsample: Number of image pyramid upsamples for the HOG detector

        Raises:
            DlibDetectorError: If dlib is missing or the model cannot be loaded
        """
        self.model_path = Path(model_path)
        self.upsample = upsample
        self._detector = None
        self._predictor = None
        self._init_models()

        logger.info(f"DlibLandmarkDetector initialized from: {self.model_path}")

    def _init_models(self) -> None:
        """Load the HOG detector and shape predictor."""
        try:
            import dlib
        except ImportError:
            raise DlibDetectorError(
                "dlib is required for DlibLandmarkDetector. "
                "Install with: pip install 'maskscan[dlib]'"
            )

        if not self.model_path.exists():
            raise DlibDetectorError(f"Cannot find dlib predictor file at: {self.model_path}")

        try:
            self._detector = dlib.get_frontal_face_detector()
            self._predictor = dlib.shape_predictor(str(self.model_path))
        except RuntimeError as e:
            raise DlibDetectorError(f"Failed to load predictor {self.model_path}: {e}")

    def detect(self, image: np.ndarray) -> List[Detection]:
        """
        Detect faces and predict 68 landmarks for each.

        Args:
            image: Normalized RGB frame (N, N, 3), uint8

        Returns:
            One Detection per face found
        """
        if self._detector is None or self._predictor is None:
            raise DlibDetectorError("DlibLandmarkDetector used after release")

        gray = cv2.cvtColor(image, cv2.COLOR_RGB2GRAY)
        rects = self._detector(gray, self.upsample)

        detections: List[Detection] = []
        for rect in rects:
            shape = self._predictor(gray, rect)
            landmarks = tuple(
                Landmark(index=i, x=shape.part(i).x, y=shape.part(i).y)
                for i in range(LANDMARK_COUNT)
            )
            detections.append(
                Detection(
                    left=rect.left(),
                    top=rect.top(),
                    right=rect.right(),
                    bottom=rect.bottom(),
                    landmarks=landmarks,
                )
            )

        return detections

    def release(self) -> None:
        """Drop references to the dlib models."""
        self._detector = None
        self._predictor = None
        logger.info("DlibLandmarkDetector released")
