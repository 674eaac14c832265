"""
Frame Slot
==========

The pipeline's single set of reusable frame buffers.

This module provides the FrameSlot class, which is the ONLY interface
between the camera-side ingestor and the inference worker.

Design Rules:
    - Exactly one slot per pipeline (no queue, no double buffering)
    - Only the holder of the admission ticket may touch the buffers
    - Buffers are reallocated only when the source resolution changes
    - The consumer calls release() once it has fully finished with the frame
"""

import logging
from typing import List, Optional, Sequence, Tuple

import numpy as np

from maskscan.stream.admission import AdmissionTicket


logger = logging.getLogger(__name__)


class FrameSlot:
    """
    Reusable packed/normalized frame buffers plus ownership.

    Attributes:
        dst_side: Side of the normalized square
        width: Current source width
        height: Current source height
        packed: (height, width, 3) RGB buffer
        normalized: (dst_side, dst_side, 3) RGB buffer
        planes: Scratch copies of the raw planes
        allocation_count: Number of buffer (re)allocations so far
        frame_index: Index of the frame currently held
        rotation: Rotation applied to the frame currently held
    """

    def __init__(self, dst_side: int = 224) -> None:
        if dst_side < 1:
            raise ValueError("dst_side must be >= 1")

        self.dst_side = dst_side
        self.width: int = 0
        self.height: int = 0
        self.packed: Optional[np.ndarray] = None
        self.normalized: Optional[np.ndarray] = None
        self.planes: List[np.ndarray] = []
        self.allocation_count: int = 0
        self.frame_index: int = -1
        self.rotation: int = 0
        self._plane_sizes: Tuple[int, ...] = ()
        self._ticket: Optional[AdmissionTicket] = None

    @property
    def owned(self) -> bool:
        """Whether a ticket holder currently owns the slot."""
        return self._ticket is not None and not self._ticket.released

    def ensure_capacity(
        self,
        width: int,
        height: int,
        plane_sizes: Sequence[int],
    ) -> bool:
        """
        Reallocate buffers when the resolution or plane layout changed.

        Args:
            width: Source width in pixels
            height: Source height in pixels
            plane_sizes: Byte size of each raw plane

        Returns:
            True if buffers were (re)allocated.
        """
        plane_sizes = tuple(int(s) for s in plane_sizes)
        if (
            self.packed is not None
            and width == self.width
            and height == self.height
            and plane_sizes == self._plane_sizes
        ):
            return False

        self.width = width
        self.height = height
        self._plane_sizes = plane_sizes

        logger.info(f"Initializing at size {width}x{height}")
        self.packed = np.zeros((height, width, 3), dtype=np.uint8)
        self.normalized = np.zeros((self.dst_side, self.dst_side, 3), dtype=np.uint8)
        self.planes = [np.empty(size, dtype=np.uint8) for size in plane_sizes]
        self.allocation_count += 1
        return True

    def claim(self, ticket: AdmissionTicket) -> None:
        """Take ownership of the slot for the lifetime of ticket."""
        if self.owned:
            raise RuntimeError(
                f"FrameSlot already owned by ticket {self._ticket.sequence}"
            )
        self._ticket = ticket

    def release(self) -> bool:
        """
        Give the slot back; the admission guard returns to IDLE.

        Returns:
            True if this call released ownership.
        """
        ticket, self._ticket = self._ticket, None
        if ticket is None:
            return False
        return ticket.release()

    def metrics(self) -> dict:
        """
        Get slot metrics for observability.

        Returns:
            Dict with resolution, allocations and ownership
        """
        return {
            "width": self.width,
            "height": self.height,
            "dst_side": self.dst_side,
            "allocations": self.allocation_count,
            "owned": self.owned,
            "frame_index": self.frame_index,
        }
