"""
Frame Ingestor
==============

Camera-thread entry point of the pipeline.

This module provides the FrameIngestor class which:
    - Applies single-flight admission control (drops frames while busy)
    - (Re)allocates the frame slot when the resolution changes
    - Copies plane bytes out of the RawFrame and releases it immediately
    - Converts YUV to RGB and normalizes into the detector square
    - Hands the filled slot, with its admission ticket, to the consumer

Design Rules:
    - The RawFrame is released on every exit path
    - The admission guard returns to IDLE on every exit path that does not
      hand the slot off
    - Never blocks on the consumer; there is no queue
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Tuple

import numpy as np

from maskscan.imaging.color import as_byte_array, convert_yuv420_to_rgb
from maskscan.imaging.geometry import OrientationSource, normalize
from maskscan.observability.preview import PreviewWriter
from maskscan.stream.admission import AdmissionGuard
from maskscan.stream.frame import RawFrame
from maskscan.stream.slot import FrameSlot


logger = logging.getLogger(__name__)


class IngestStatus(str, Enum):
    """Outcome of one camera callback."""

    ACCEPTED = "ACCEPTED"
    DROPPED = "DROPPED"
    EMPTY = "EMPTY"
    FAILED = "FAILED"


@dataclass(frozen=True, slots=True)
class ProcessedFrame:
    """
    Normalized frame ready for detection.

    Attributes:
        frame_index: Camera frame counter
        width: Source width
        height: Source height
        rotation: Rotation applied during normalization
        normalized: View of the slot's normalized buffer
        convert_seconds: Time spent copying, converting and normalizing
    """

    frame_index: int
    width: int
    height: int
    rotation: int
    normalized: np.ndarray
    convert_seconds: float

    def __repr__(self) -> str:
        return (
            f"ProcessedFrame(frame_index={self.frame_index}, "
            f"source={self.width}x{self.height}, "
            f"rotation={self.rotation})"
        )


@dataclass(frozen=True, slots=True)
class IngestOutcome:
    """Status plus the processed frame when accepted."""

    status: IngestStatus
    frame: Optional[ProcessedFrame] = None
    error: Optional[str] = None


# Receives the owned slot; must call slot.release() when finished
FrameHandoff = Callable[[FrameSlot, ProcessedFrame], None]


class FrameIngestorMetrics:
    """Metrics for FrameIngestor observability."""

    __slots__ = (
        "frames_received",
        "frames_accepted",
        "frames_dropped",
        "frames_failed",
        "frames_empty",
        "last_frame_index",
    )

    def __init__(self) -> None:
        self.frames_received: int = 0
        self.frames_accepted: int = 0
        self.frames_dropped: int = 0
        self.frames_failed: int = 0
        self.frames_empty: int = 0
        self.last_frame_index: int = -1

    def to_dict(self) -> dict:
        """Export metrics as dict."""
        return {
            "frames_received": self.frames_received,
            "frames_accepted": self.frames_accepted,
            "frames_dropped": self.frames_dropped,
            "frames_failed": self.frames_failed,
            "frames_empty": self.frames_empty,
            "last_frame_index": self.last_frame_index,
        }


class FrameIngestor:
    """
    Admission-controlled YUV ingestion into the frame slot.

    Attributes:
        slot: The pipeline's frame slot
        guard: Single-flight admission guard
        metrics: Operational counters

    Example:
        ingestor = FrameIngestor(input_size=224, on_ready=worker.submit)

        outcome = ingestor.on_frame(camera.acquire_latest_frame())
        if outcome.status is IngestStatus.DROPPED:
            ...
    """

    def __init__(
        self,
        input_size: int = 224,
        orientation: Optional[OrientationSource] = None,
        swap_uv: bool = False,
        on_ready: Optional[FrameHandoff] = None,
        guard: Optional[AdmissionGuard] = None,
        preview: Optional[PreviewWriter] = None,
    ) -> None:
        """
        Initialize frame ingestor.

        Args:
            input_size: Side of the normalized square
            orientation: Rotation provider sampled once per frame
                (None = never rotate)
            swap_uv: Read chroma planes in V/U order
            on_ready: Consumer receiving the filled slot. When None the slot
                is released as soon as on_frame returns.
            guard: Admission guard (a fresh one if None)
            preview: Optional debug writer for normalized frames
        """
        self.input_size = input_size
        self.orientation = orientation
        self.swap_uv = swap_uv
        self.on_ready = on_ready
        self.guard = guard or AdmissionGuard()
        self.preview = preview
        self.slot = FrameSlot(dst_side=input_size)
        self.metrics = FrameIngestorMetrics()

        logger.info(
            f"FrameIngestor initialized: input_size={input_size}, swap_uv={swap_uv}"
        )

    @property
    def allocation_count(self) -> int:
        return self.slot.allocation_count

    def on_frame(self, raw: Optional[RawFrame]) -> IngestOutcome:
        """
        Process one camera callback.

        Args:
            raw: Frame from the camera, or None when none was available

        Returns:
            IngestOutcome describing what happened to the frame
        """
        if raw is None:
            self.metrics.frames_empty += 1
            return IngestOutcome(IngestStatus.EMPTY)

        self.metrics.frames_received += 1

        with self.guard.admit() as ticket:
            if ticket is None:
                raw.release()
                self.metrics.frames_dropped += 1
                logger.debug(f"Busy, dropped frame {raw.frame_index}")
                return IngestOutcome(IngestStatus.DROPPED)

            self.slot.claim(ticket)
            handed_off = False
            try:
                processed = self._process(raw)
                if self.on_ready is not None:
                    ticket.transfer()
                    self.on_ready(self.slot, processed)
                    handed_off = True
            except Exception as e:
                self.metrics.frames_failed += 1
                logger.exception(f"Failed to ingest frame {raw.frame_index}")
                return IngestOutcome(IngestStatus.FAILED, error=str(e))
            finally:
                raw.release()
                if not handed_off:
                    self.slot.release()

        self.metrics.frames_accepted += 1
        self.metrics.last_frame_index = raw.frame_index
        return IngestOutcome(IngestStatus.ACCEPTED, frame=processed)

    def _split_planes(self, raw: RawFrame) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Return (Y, U, V) views over the slot's scratch copies."""
        planes = self.slot.planes
        if len(planes) == 3:
            return planes[0], planes[1], planes[2]
        # Semi-planar: V samples sit one byte after the U samples
        return planes[0], planes[1], planes[1][1:]

    def _process(self, raw: RawFrame) -> ProcessedFrame:
        start = time.perf_counter()
        rotation = self.orientation.rotation_degrees() if self.orientation else 0

        sources = [as_byte_array(plane.data) for plane in raw.planes]
        self.slot.ensure_capacity(raw.width, raw.height, [s.size for s in sources])
        for scratch, source in zip(self.slot.planes, sources):
            np.copyto(scratch, source)

        y_row_stride = raw.planes[0].row_stride
        uv_row_stride = raw.planes[1].row_stride
        uv_pixel_stride = raw.planes[1].pixel_stride
        frame_index = raw.frame_index
        width, height = raw.width, raw.height

        # Bytes are copied out; the camera can have its buffer back
        raw.release()

        y_plane, u_plane, v_plane = self._split_planes(raw)
        convert_yuv420_to_rgb(
            y_plane,
            u_plane,
            v_plane,
            width,
            height,
            y_row_stride,
            uv_row_stride,
            uv_pixel_stride,
            swap_uv=self.swap_uv,
            out=self.slot.packed,
        )
        normalize(
            self.slot.packed,
            self.slot.dst_side,
            rotation,
            out=self.slot.normalized,
        )

        self.slot.frame_index = frame_index
        self.slot.rotation = rotation

        if self.preview is not None:
            self.preview.write(self.slot.normalized, frame_index)

        elapsed = time.perf_counter() - start
        logger.debug(f"Frame {frame_index} normalized in {elapsed * 1000:.1f} ms")

        return ProcessedFrame(
            frame_index=frame_index,
            width=width,
            height=height,
            rotation=rotation,
            normalized=self.slot.normalized,
            convert_seconds=elapsed,
        )
