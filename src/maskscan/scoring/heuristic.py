"""
Mask Heuristic Scorer
=====================

Estimates whether a face is covered by comparing hues around the mouth with
the hue of the skin between the eyes.

Algorithm:
    1. Build three hue regions from fixed landmark pairs
       (eyes area, left of mouth, right of mouth)
    2. Average the HSV hue over each region:
       x in [min_x, max_x), y in [min_y - 1, max_y + 1], in-bounds pixels only
    3. score = 100 - |eyes - mouth| / max(eyes, mouth) * 100
       where mouth = mean(left_mouth, right_mouth)

The hue distance is linear, not circular: hues near 0 and near 360 degrees
count as far apart.

A region with no in-bounds pixels, or an all-zero hue pair, yields the
undefined MaskScore instead of a division fault.
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

import cv2
import numpy as np

from maskscan.models.landmarks import (
    LANDMARK_COUNT,
    Detection,
    HueRegion,
    Landmark,
    LandmarkIndex,
    MaskScore,
)


logger = logging.getLogger(__name__)


# Region name -> landmark pair spanning it
MASK_REGIONS: Dict[str, Tuple[LandmarkIndex, LandmarkIndex]] = {
    "eyes_area": (LandmarkIndex.LEFT_EYEBROW_INNER, LandmarkIndex.RIGHT_EYE_INNER),
    "left_mouth": (LandmarkIndex.JAW_LEFT_LOWER, LandmarkIndex.MOUTH_CORNER_LEFT),
    "right_mouth": (LandmarkIndex.MOUTH_CORNER_RIGHT, LandmarkIndex.JAW_RIGHT_LOWER),
}


def hue_channel(frame: np.ndarray) -> np.ndarray:
    """
    Compute the HSV hue of an RGB frame.

    Args:
        frame: RGB image (H, W, 3), uint8

    Returns:
        Hue in degrees [0, 360) as float32 (H, W)
    """
    if frame.ndim != 3 or frame.shape[2] != 3:
        raise ValueError(f"Frame must be (H, W, 3) RGB, got shape {frame.shape}")
    rgb = frame.astype(np.float32) / 255.0
    hsv = cv2.cvtColor(rgb, cv2.COLOR_RGB2HSV)
    return hsv[..., 0]


def average_hue(hue: np.ndarray, region: HueRegion) -> Optional[float]:
    """
    Average hue over a region, or None when no pixel falls inside the frame.

    Rows extend one pixel above min_y and one below max_y; columns stop
    before max_x.
    """
    height, width = hue.shape
    x0 = max(region.min_x, 0)
    x1 = min(region.max_x, width)
    y0 = max(region.min_y - 1, 0)
    y1 = min(region.max_y + 2, height)

    if x1 <= x0 or y1 <= y0:
        return None

    return float(hue[y0:y1, x0:x1].mean(dtype=np.float64))


class MaskHeuristicScorer:
    """
    Landmark-driven hue comparison heuristic.

    Attributes:
        regions: Region name -> landmark pair table

    Example:
        scorer = MaskHeuristicScorer()
        score = scorer.score(detection.landmarks, frame)
        if score.is_defined:
            print(f"Mask score: {score.value:.1f}")
    """

    def __init__(
        self,
        regions: Optional[Dict[str, Tuple[LandmarkIndex, LandmarkIndex]]] = None,
    ) -> None:
        self.regions = dict(regions or MASK_REGIONS)
        for name in ("eyes_area", "left_mouth", "right_mouth"):
            if name not in self.regions:
                raise ValueError(f"Missing region definition: {name}")

    def hue_regions(self, landmarks: Sequence[Landmark]) -> Dict[str, HueRegion]:
        """Resolve every named region against a landmark set."""
        if len(landmarks) != LANDMARK_COUNT:
            raise ValueError(
                f"Expected {LANDMARK_COUNT} landmarks, got {len(landmarks)}"
            )
        return {
            name: HueRegion.spanning(landmarks[a], landmarks[b])
            for name, (a, b) in self.regions.items()
        }

    def score(self, landmarks: Sequence[Landmark], frame: np.ndarray) -> MaskScore:
        """
        Compute the mask-presence score for one face.

        Args:
            landmarks: 68 landmarks in frame coordinates
            frame: Normalized RGB frame (N, N, 3), uint8

        Returns:
            MaskScore (value None when undefined)
        """
        return self._score_hue(landmarks, hue_channel(frame))

    def score_all(
        self,
        detections: Sequence[Detection],
        frame: np.ndarray,
    ) -> List[MaskScore]:
        """
        Score every detection against the same unannotated frame.

        The hue channel is computed once; call this before drawing any overlay.
        """
        if not detections:
            return []
        hue = hue_channel(frame)
        return [self._score_hue(detection.landmarks, hue) for detection in detections]

    def _score_hue(self, landmarks: Sequence[Landmark], hue: np.ndarray) -> MaskScore:
        regions = self.hue_regions(landmarks)

        averages = {name: average_hue(hue, region) for name, region in regions.items()}
        hues = {
            "eyes_hue": averages["eyes_area"],
            "left_mouth_hue": averages["left_mouth"],
            "right_mouth_hue": averages["right_mouth"],
        }

        empty = [name for name, value in averages.items() if value is None]
        if empty:
            logger.debug(f"Degenerate hue regions: {empty}")
            return MaskScore.undefined(
                f"empty region: {', '.join(empty)}", **hues
            )

        eyes = averages["eyes_area"]
        mouth = (averages["left_mouth"] + averages["right_mouth"]) / 2
        denominator = max(eyes, mouth)
        if denominator <= 0.0:
            return MaskScore.undefined("zero hue in all regions", **hues)

        value = 100.0 - abs(eyes - mouth) / denominator * 100.0
        return MaskScore(value=value, **hues)
