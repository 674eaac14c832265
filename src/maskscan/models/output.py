"""
Pipeline Output Models
======================

This module defines the published output contract for MaskScan.

Output Contract:
    {
        "frame_index": 1234,
        "timestamp": 1770500938.284,
        "detection_seconds": 0.112,
        "status": "Time cost: 0.112 sec",
        "faces": [
            {
                "bbox": [52, 40, 171, 180],
                "mask_score": 50.0,
                "eyes_hue": 120.0,
                "mouth_hue": 240.0,
                "reason": ""
            }
        ]
    }

Design Rules:
    - One FrameResult per presented frame
    - mask_score is null when the heuristic is undefined for that face
    - Observability only; nothing here feeds back into the pipeline
"""

from typing import List, Optional, Tuple

from pydantic import BaseModel, Field

from maskscan.models.landmarks import Detection, MaskScore


class FaceResult(BaseModel):
    """
    Heuristic result for one detected face.

    Attributes:
        bbox: (left, top, right, bottom) in normalized-frame pixels
        mask_score: Score in percent, None when undefined
        eyes_hue: Average hue of the eyes area
        mouth_hue: Mean of the two mouth-side hues
        reason: Why the score is undefined
    """

    bbox: Tuple[int, int, int, int] = Field(
        ...,
        description="Bounding box (left, top, right, bottom)",
    )

    mask_score: Optional[float] = Field(
        default=None,
        description="Mask-presence score in percent (null when undefined)",
    )

    eyes_hue: Optional[float] = Field(
        default=None,
        description="Average hue of the eyes area in degrees",
    )

    mouth_hue: Optional[float] = Field(
        default=None,
        description="Mean hue of the two mouth-side regions in degrees",
    )

    reason: str = Field(
        default="",
        description="Explanation when the score is undefined",
    )

    @classmethod
    def from_score(cls, detection: Detection, score: MaskScore) -> "FaceResult":
        mouth_hue = None
        if score.left_mouth_hue is not None and score.right_mouth_hue is not None:
            mouth_hue = (score.left_mouth_hue + score.right_mouth_hue) / 2
        return cls(
            bbox=detection.bbox,
            mask_score=score.value,
            eyes_hue=score.eyes_hue,
            mouth_hue=mouth_hue,
            reason=score.reason,
        )


class FrameResult(BaseModel):
    """
    Complete published result for one processed frame.

    Attributes:
        frame_index: Camera frame counter
        timestamp: Wall-clock time the result was produced
        detection_seconds: Time spent inside the landmark detector
        status: Human-readable status line shown with the frame
        detector_error: Error text when detection failed
        faces: Per-face heuristic results
    """

    frame_index: int = Field(..., ge=0, description="Camera frame counter")

    timestamp: float = Field(..., gt=0, description="UNIX timestamp of the result")

    detection_seconds: float = Field(
        default=0.0,
        ge=0.0,
        description="Seconds spent in the landmark detector",
    )

    status: str = Field(default="", description="Status line shown with the frame")

    detector_error: Optional[str] = Field(
        default=None,
        description="Detector failure message, if any",
    )

    faces: List[FaceResult] = Field(default_factory=list)
