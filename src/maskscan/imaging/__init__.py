"""
Imaging Module
==============

Pixel-level transforms applied on the camera thread.

Components:
    - convert_yuv420_to_rgb: Planar/semi-planar YUV to packed RGB
    - normalize: Center-crop, scale and rotate into the detector square
    - DisplayOrientation: Rotation derived from display dimensions
"""

from maskscan.imaging.color import ConversionError, convert_yuv420_to_rgb
from maskscan.imaging.geometry import (
    DisplayOrientation,
    OrientationSource,
    build_transform,
    normalize,
    rotation_for_display,
)

__all__ = [
    "ConversionError",
    "convert_yuv420_to_rgb",
    "DisplayOrientation",
    "OrientationSource",
    "build_transform",
    "normalize",
    "rotation_for_display",
]
