"""
Landmark Models
===============

Face detections, the 68-point landmark schema and hue-region primitives.

Landmark Schema:
    Indices follow the iBUG 300-W 68-point layout produced by dlib's
    shape_predictor_68_face_landmarks model. Left and right are as seen in
    the image (the subject's right side is on the image left).

        0-16   jaw line, image left to image right
        17-21  left eyebrow
        22-26  right eyebrow
        27-35  nose
        36-41  left eye
        42-47  right eye
        48-67  mouth (48 and 54 are the corners)
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Optional, Sequence, Tuple


LANDMARK_COUNT = 68


class LandmarkIndex(IntEnum):
    """
    Named positions in the 68-point schema.

    Only the points that span the mask hue regions are named.
    """

    JAW_LEFT_LOWER = 4
    JAW_RIGHT_LOWER = 12
    LEFT_EYEBROW_INNER = 21
    RIGHT_EYE_INNER = 42
    MOUTH_CORNER_LEFT = 48
    MOUTH_CORNER_RIGHT = 54


@dataclass(frozen=True, slots=True)
class Landmark:
    """
    Single face landmark in normalized-frame pixel coordinates.

    Attributes:
        index: Position in the 68-point schema
        x: Column
        y: Row
    """

    index: int
    x: int
    y: int

    def __post_init__(self) -> None:
        if not 0 <= self.index < LANDMARK_COUNT:
            raise ValueError(f"Landmark index out of range: {self.index}")


@dataclass(frozen=True, slots=True)
class Detection:
    """
    One detected face.

    Attributes:
        left, top, right, bottom: Bounding box in normalized-frame pixels
        landmarks: Exactly 68 landmarks ordered by schema index
    """

    left: int
    top: int
    right: int
    bottom: int
    landmarks: Tuple[Landmark, ...]

    def __post_init__(self) -> None:
        if len(self.landmarks) != LANDMARK_COUNT:
            raise ValueError(
                f"Detection needs {LANDMARK_COUNT} landmarks, got {len(self.landmarks)}"
            )

    @property
    def bbox(self) -> Tuple[int, int, int, int]:
        return self.left, self.top, self.right, self.bottom

    def landmark(self, index: int) -> Landmark:
        return self.landmarks[int(index)]


def landmarks_from_points(points: Sequence[Tuple[float, float]]) -> Tuple[Landmark, ...]:
    """Build a landmark tuple from (x, y) pairs ordered by schema index."""
    return tuple(
        Landmark(index=i, x=int(x), y=int(y)) for i, (x, y) in enumerate(points)
    )


@dataclass(frozen=True, slots=True)
class HueRegion:
    """
    Rectangular hue sample area spanned by two landmarks.

    Always normalized so that min <= max on both axes.
    """

    min_x: int
    max_x: int
    min_y: int
    max_y: int

    def __post_init__(self) -> None:
        if self.min_x > self.max_x or self.min_y > self.max_y:
            raise ValueError(f"HueRegion is not normalized: {self}")

    @classmethod
    def spanning(cls, a: Landmark, b: Landmark) -> "HueRegion":
        """Region spanned by two landmarks, in either order."""
        return cls(
            min_x=min(a.x, b.x),
            max_x=max(a.x, b.x),
            min_y=min(a.y, b.y),
            max_y=max(a.y, b.y),
        )


@dataclass(frozen=True, slots=True)
class MaskScore:
    """
    Mask-presence score for one face.

    Higher values mean the mouth area looks like the skin between the eyes,
    i.e. the face is more likely uncovered.

    Attributes:
        value: Score in percent, or None when undefined
        eyes_hue: Average hue of the eyes area (degrees)
        left_mouth_hue: Average hue left of the mouth
        right_mouth_hue: Average hue right of the mouth
        reason: Why the score is undefined (empty when defined)
    """

    value: Optional[float]
    eyes_hue: Optional[float] = None
    left_mouth_hue: Optional[float] = None
    right_mouth_hue: Optional[float] = None
    reason: str = ""

    @property
    def is_defined(self) -> bool:
        return self.value is not None

    @classmethod
    def undefined(cls, reason: str, **hues: Optional[float]) -> "MaskScore":
        return cls(value=None, reason=reason, **hues)

    def __str__(self) -> str:
        if self.value is None:
            return "undefined"
        return f"{self.value:.2f}"
