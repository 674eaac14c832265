"""
Data Models
===========

Data models for MaskScan.

Models:
    Landmarks:
        - LandmarkIndex: Named positions in the 68-point schema
        - Landmark, Detection: Detector output
        - HueRegion: Rectangular hue sample area
        - MaskScore: Heuristic result (value None when undefined)

    Output:
        - FaceResult: Per-face published result
        - FrameResult: Per-frame published result
"""

from maskscan.models.landmarks import (
    LANDMARK_COUNT,
    Detection,
    HueRegion,
    Landmark,
    LandmarkIndex,
    MaskScore,
    landmarks_from_points,
)
from maskscan.models.output import FaceResult, FrameResult

__all__ = [
    # Landmarks
    "LANDMARK_COUNT",
    "Landmark",
    "LandmarkIndex",
    "Detection",
    "HueRegion",
    "MaskScore",
    "landmarks_from_points",
    # Output
    "FaceResult",
    "FrameResult",
]
