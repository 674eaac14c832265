"""
Color Space Conversion
======================

YUV 4:2:0 to packed RGB conversion for camera frames.

Design Rules:
    - This is the ONLY place in the codebase that interprets YUV samples
    - Honors arbitrary row and pixel strides (planar and semi-planar chroma)
    - Pure function of its inputs; writes into a caller-owned buffer if given
    - Fails fast on planes too short for the requested geometry

The arithmetic is BT.601 limited range in 10-bit fixed point, the same
integer formula camera preview pipelines use on device:

    y = max(Y - 16, 0); u = U - 128; v = V - 128
    R = 1192*y + 1634*v
    G = 1192*y - 833*v - 400*u
    B = 1192*y + 2066*u

Each channel is clamped to [0, 262143] before the >> 10 shift, so values
saturate instead of wrapping.
"""

import logging
from typing import Optional

import numpy as np


logger = logging.getLogger(__name__)

MAX_CHANNEL_VALUE = 262143  # 2**18 - 1


class ConversionError(Exception):
    """Raised when a frame cannot be converted to RGB."""
    pass


def as_byte_array(buffer) -> np.ndarray:
    """Return a 1-D uint8 view over a plane buffer."""
    if isinstance(buffer, np.ndarray):
        if buffer.dtype != np.uint8:
            raise ConversionError(f"Plane dtype must be uint8, got {buffer.dtype}")
        return buffer.reshape(-1)
    return np.frombuffer(buffer, dtype=np.uint8)


def _check_plane(name: str, plane: np.ndarray, last_index: int) -> None:
    if plane.size <= last_index:
        raise ConversionError(
            f"{name} plane too short: needs {last_index + 1} bytes, has {plane.size}"
        )


def convert_yuv420_to_rgb(
    y_plane,
    u_plane,
    v_plane,
    width: int,
    height: int,
    y_row_stride: int,
    uv_row_stride: int,
    uv_pixel_stride: int,
    swap_uv: bool = False,
    out: Optional[np.ndarray] = None,
) -> np.ndarray:
    """
    Convert YUV 4:2:0 planes to a packed RGB frame.

    Args:
        y_plane: Luma bytes
        u_plane: Chroma-U bytes
        v_plane: Chroma-V bytes
        width: Frame width in pixels
        height: Frame height in pixels
        y_row_stride: Bytes between luma rows
        uv_row_stride: Bytes between chroma rows
        uv_pixel_stride: Bytes between chroma samples in a row
            (1 = planar, 2 = interleaved)
        swap_uv: Read u_plane as V and v_plane as U
        out: Optional (height, width, 3) uint8 buffer to write into

    Returns:
        RGB image as np.ndarray (H, W, 3), dtype=uint8

    Raises:
        ConversionError: If dimensions, strides or plane sizes are invalid
    """
    if width <= 0 or height <= 0:
        raise ConversionError(f"Invalid frame size {width}x{height}")
    if y_row_stride < width:
        raise ConversionError(
            f"Luma row stride {y_row_stride} smaller than width {width}"
        )
    if uv_pixel_stride < 1 or uv_row_stride < 1:
        raise ConversionError(
            f"Invalid chroma strides: row={uv_row_stride}, pixel={uv_pixel_stride}"
        )

    luma = as_byte_array(y_plane)
    chroma_u = as_byte_array(u_plane)
    chroma_v = as_byte_array(v_plane)
    if swap_uv:
        chroma_u, chroma_v = chroma_v, chroma_u

    _check_plane("Y", luma, (height - 1) * y_row_stride + (width - 1))
    last_uv = ((height - 1) >> 1) * uv_row_stride + ((width - 1) >> 1) * uv_pixel_stride
    _check_plane("U", chroma_u, last_uv)
    _check_plane("V", chroma_v, last_uv)

    if out is None:
        out = np.empty((height, width, 3), dtype=np.uint8)
    elif out.shape != (height, width, 3) or out.dtype != np.uint8:
        raise ConversionError(
            f"Output buffer must be ({height}, {width}, 3) uint8, "
            f"got {out.shape} {out.dtype}"
        )

    rows = np.arange(height, dtype=np.int64)[:, None]
    cols = np.arange(width, dtype=np.int64)[None, :]
    y_index = rows * y_row_stride + cols
    uv_index = (rows >> 1) * uv_row_stride + (cols >> 1) * uv_pixel_stride

    y = luma[y_index].astype(np.int32) - 16
    np.maximum(y, 0, out=y)
    u = chroma_u[uv_index].astype(np.int32) - 128
    v = chroma_v[uv_index].astype(np.int32) - 128

    y1192 = 1192 * y
    r = y1192 + 1634 * v
    g = y1192 - 833 * v - 400 * u
    b = y1192 + 2066 * u

    out[..., 0] = np.clip(r, 0, MAX_CHANNEL_VALUE) >> 10
    out[..., 1] = np.clip(g, 0, MAX_CHANNEL_VALUE) >> 10
    out[..., 2] = np.clip(b, 0, MAX_CHANNEL_VALUE) >> 10

    return out
