"""
Detection Module
================

Face-landmark detection behind a pluggable, single-flight boundary.

Components:
    - LandmarkDetector: Protocol for detector backends
    - MockLandmarkDetector: Deterministic mock for testing
    - DlibLandmarkDetector: dlib HOG + 68-point predictor (optional extra)
    - DetectionInvoker: Shutdown barrier around detect()/release()
    - ModelProvisioner: Copies the bundled model into place

Design Philosophy:
    The detector is an opaque synchronous service. The pipeline reasons
    over landmarks, NOT over detector internals.
"""

from maskscan.detection.engine import (
    LandmarkDetector,
    MockLandmarkDetector,
    canonical_landmarks,
)
from maskscan.detection.dlib_engine import DlibDetectorError, DlibLandmarkDetector
from maskscan.detection.invoker import (
    DetectionError,
    DetectionInvoker,
    DetectorClosedError,
)
from maskscan.detection.provisioning import ModelProvisioner, ModelProvisioningError

__all__ = [
    "LandmarkDetector",
    "MockLandmarkDetector",
    "canonical_landmarks",
    "DlibDetectorError",
    "DlibLandmarkDetector",
    "DetectionError",
    "DetectionInvoker",
    "DetectorClosedError",
    "ModelProvisioner",
    "ModelProvisioningError",
]
