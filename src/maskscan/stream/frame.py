"""
Frame Data Model
=================

Raw sensor frame representation for the ingestion pipeline.

This module defines the RawFrame and Plane classes handed over by a camera
source on every callback. A RawFrame wraps storage owned by the camera; the
ingestor copies the plane bytes out and releases the frame right away.

Design Rules:
    - RawFrame is never retained across a frame boundary
    - release() is idempotent and safe to call on every exit path
    - Does NOT convert or manipulate pixel data
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, Tuple

import numpy as np


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Plane:
    """
    One sample plane of a YUV 4:2:0 frame.

    Attributes:
        data: 1-D uint8 view over the plane bytes
        row_stride: Byte distance between the starts of consecutive rows
        pixel_stride: Byte distance between consecutive samples in a row
    """

    data: np.ndarray
    row_stride: int
    pixel_stride: int = 1

    def __repr__(self) -> str:
        return (
            f"Plane(bytes={self.data.size}, "
            f"row_stride={self.row_stride}, "
            f"pixel_stride={self.pixel_stride})"
        )


@dataclass(eq=False)
class RawFrame:
    """
    Frame delivered by a camera callback.

    Holds 2 or 3 planes (luma, chroma-U, chroma-V). With two planes the
    chroma samples are interleaved in the second plane and the V samples
    start one byte after the U samples.

    Attributes:
        planes: Luma plane followed by the chroma plane(s)
        width: Frame width in pixels
        height: Frame height in pixels
        frame_index: Counter assigned by the camera source
        timestamp: Capture time in seconds
    """

    planes: Tuple[Plane, ...]
    width: int
    height: int
    frame_index: int = 0
    timestamp: float = 0.0
    on_release: Optional[Callable[[], None]] = field(default=None, repr=False)
    _released: bool = field(default=False, init=False, repr=False)

    def __post_init__(self) -> None:
        if not 2 <= len(self.planes) <= 3:
            raise ValueError(f"RawFrame needs 2 or 3 planes, got {len(self.planes)}")
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Invalid frame size {self.width}x{self.height}")
        if self.frame_index < 0:
            raise ValueError(f"Negative frame index: {self.frame_index}")

    @property
    def released(self) -> bool:
        """Whether the backing storage has been handed back."""
        return self._released

    def release(self) -> None:
        """Hand the backing storage back to the camera source."""
        if self._released:
            return
        self._released = True
        if self.on_release is not None:
            self.on_release()
