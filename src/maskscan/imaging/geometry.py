"""
Geometry Normalization
======================

Center-crop, scale and rotate a packed frame into the detector's square input.

The crop, scale and rotation are composed into one affine matrix and applied
with a single cv2.warpAffine call, so every output pixel is resampled exactly
once.

Resampling:
    Nearest neighbour (cv2.INTER_NEAREST) with a constant black border.
    Pixel-exact test fixtures depend on this choice.

Rotation:
    Positive angles turn the image clockwise on screen (y axis pointing
    down), the way a display rotation does. The angle is supplied by an
    OrientationSource; it is never derived from the frame itself.
"""

import logging
from typing import Optional, Protocol

import cv2
import numpy as np


logger = logging.getLogger(__name__)

VALID_ROTATIONS = (0, 90, 180, 270)


class OrientationSource(Protocol):
    """
    Protocol for device orientation providers.

    Sampled once per frame by the ingestor.
    """

    def rotation_degrees(self) -> int:
        """Return the rotation to apply: 0, 90, 180 or 270."""
        ...


def rotation_for_display(display_width: int, display_height: int) -> int:
    """Portrait displays need a 90 degree turn, landscape ones none."""
    return 90 if display_width < display_height else 0


class DisplayOrientation:
    """OrientationSource backed by the current display dimensions."""

    def __init__(self, display_width: int, display_height: int) -> None:
        self.display_width = display_width
        self.display_height = display_height

    def resize(self, display_width: int, display_height: int) -> None:
        """Record new display dimensions (e.g. after a device rotation)."""
        self.display_width = display_width
        self.display_height = display_height

    def rotation_degrees(self) -> int:
        return rotation_for_display(self.display_width, self.display_height)


def build_transform(
    src_width: int,
    src_height: int,
    dst_side: int,
    rotation_degrees: int = 0,
) -> np.ndarray:
    """
    Build the 2x3 affine matrix mapping source pixels to the square output.

    Steps (composed right to left):
        1. Translate so the centered min_dim x min_dim square starts at 0
        2. Scale uniformly to dst_side
        3. Rotate about the output center if rotation_degrees != 0

    Args:
        src_width: Source width in pixels
        src_height: Source height in pixels
        dst_side: Output side length
        rotation_degrees: 0, 90, 180 or 270

    Returns:
        2x3 float64 affine matrix

    Raises:
        ValueError: On non-positive sizes or an unsupported rotation
    """
    if src_width <= 0 or src_height <= 0 or dst_side <= 0:
        raise ValueError(
            f"Invalid sizes: src={src_width}x{src_height}, dst={dst_side}"
        )
    if rotation_degrees not in VALID_ROTATIONS:
        raise ValueError(f"Unsupported rotation: {rotation_degrees}")

    min_dim = float(min(src_width, src_height))

    # We only want the center square out of the original rectangle.
    translate_x = -max(0.0, (src_width - min_dim) / 2.0)
    translate_y = -max(0.0, (src_height - min_dim) / 2.0)
    translate = np.array(
        [[1.0, 0.0, translate_x], [0.0, 1.0, translate_y], [0.0, 0.0, 1.0]]
    )

    scale_factor = dst_side / min_dim
    scale = np.diag([scale_factor, scale_factor, 1.0])

    matrix = scale @ translate

    if rotation_degrees != 0:
        center = dst_side / 2.0
        theta = np.deg2rad(rotation_degrees)
        cos_t = round(float(np.cos(theta)))
        sin_t = round(float(np.sin(theta)))
        to_origin = np.array([[1.0, 0.0, -center], [0.0, 1.0, -center], [0.0, 0.0, 1.0]])
        rotate = np.array([[cos_t, -sin_t, 0.0], [sin_t, cos_t, 0.0], [0.0, 0.0, 1.0]])
        back = np.array([[1.0, 0.0, center], [0.0, 1.0, center], [0.0, 0.0, 1.0]])
        matrix = back @ rotate @ to_origin @ matrix

    return matrix[:2, :]


def normalize(
    src: np.ndarray,
    dst_side: int,
    rotation_degrees: int = 0,
    out: Optional[np.ndarray] = None,
) -> np.ndarray:
    """
    Normalize a packed frame into a dst_side x dst_side square.

    Args:
        src: Packed frame (H, W, C), uint8
        dst_side: Output side length
        rotation_degrees: 0, 90, 180 or 270
        out: Optional (dst_side, dst_side, C) uint8 buffer written in place

    Returns:
        Square frame as np.ndarray (dst_side, dst_side, C)
    """
    if src.ndim != 3:
        raise ValueError(f"Source must be (H, W, C), got shape {src.shape}")

    height, width, channels = src.shape
    matrix = build_transform(width, height, dst_side, rotation_degrees)

    if out is None:
        out = np.zeros((dst_side, dst_side, channels), dtype=src.dtype)
    elif out.shape != (dst_side, dst_side, channels):
        raise ValueError(
            f"Output buffer must be {(dst_side, dst_side, channels)}, got {out.shape}"
        )

    result = cv2.warpAffine(
        src,
        matrix,
        (dst_side, dst_side),
        dst=out,
        flags=cv2.INTER_NEAREST,
        borderMode=cv2.BORDER_CONSTANT,
        borderValue=(0, 0, 0),
    )
    if result is not out:
        # cv2 may hand back a fresh array when it cannot reuse dst
        np.copyto(out, result.reshape(out.shape))
    return out
