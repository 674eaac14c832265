"""
Camera Sources
==============

Frame producers feeding the ingestor.

This module provides the CameraSource protocol and OpenCVCameraSource,
which reads BGR frames from cv2.VideoCapture (webcam or video file) and
re-encodes them as I420 planes so the full YUV path is exercised.

Design Rules:
    - acquire_latest_frame() returns None when nothing is available
    - Every RawFrame handed out is released by the consumer
"""

import logging
import threading
import time
from typing import Optional, Protocol, Union

import cv2
import numpy as np

from maskscan.stream.frame import Plane, RawFrame


logger = logging.getLogger(__name__)


class CameraSource(Protocol):
    """Protocol for camera frame producers."""

    def acquire_latest_frame(self) -> Optional[RawFrame]:
        """Return the newest frame, or None when none is ready."""
        ...

    def close(self) -> None:
        """Stop capturing and free the device."""
        ...


def i420_frame_from_bgr(
    bgr: np.ndarray,
    frame_index: int = 0,
    timestamp: float = 0.0,
    on_release=None,
) -> RawFrame:
    """
    Encode a BGR image as a three-plane I420 RawFrame.

    Odd trailing rows/columns are cropped; I420 needs even dimensions.
    """
    height, width = bgr.shape[:2]
    height -= height % 2
    width -= width % 2
    if width == 0 or height == 0:
        raise ValueError(f"Image too small for I420: {bgr.shape}")

    yuv = cv2.cvtColor(np.ascontiguousarray(bgr[:height, :width]), cv2.COLOR_BGR2YUV_I420)
    flat = yuv.reshape(-1)
    luma_size = width * height
    chroma_size = luma_size // 4

    planes = (
        Plane(data=flat[:luma_size], row_stride=width, pixel_stride=1),
        Plane(data=flat[luma_size:luma_size + chroma_size], row_stride=width // 2, pixel_stride=1),
        Plane(data=flat[luma_size + chroma_size:], row_stride=width // 2, pixel_stride=1),
    )
    return RawFrame(
        planes=planes,
        width=width,
        height=height,
        frame_index=frame_index,
        timestamp=timestamp,
        on_release=on_release,
    )


class OpenCVCameraSource:
    """
    cv2.VideoCapture-backed camera.

    Attributes:
        device: Device index or video path
        frames_captured: Frames read from the device
        frames_released: Frames handed back by the consumer
    """

    def __init__(self, device: Union[int, str] = 0) -> None:
        self.device = device
        self._capture = cv2.VideoCapture(device)
        if not self._capture.isOpened():
            raise RuntimeError(f"Cannot open camera device: {device}")

        self._lock = threading.Lock()
        self._frame_index = 0
        self.frames_captured = 0
        self.frames_released = 0

        logger.info(f"OpenCVCameraSource opened: device={device}")

    def _on_release(self) -> None:
        with self._lock:
            self.frames_released += 1

    def acquire_latest_frame(self) -> Optional[RawFrame]:
        ok, bgr = self._capture.read()
        if not ok or bgr is None:
            return None

        with self._lock:
            index = self._frame_index
            self._frame_index += 1
            self.frames_captured += 1

        return i420_frame_from_bgr(
            bgr,
            frame_index=index,
            timestamp=time.time(),
            on_release=self._on_release,
        )

    def close(self) -> None:
        self._capture.release()
        logger.info(f"OpenCVCameraSource closed: device={self.device}")
