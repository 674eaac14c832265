"""
Result Presenters
=================

Display targets for the annotated normalized frame and its status line.

Implementations:
    - StatusPresenter: Keeps the latest frame/status for the service API
    - WindowPresenter: Shows frames in an OpenCV window
    - PresenterGroup: Fans one show() out to several presenters

Design Rules:
    - show() runs on the inference worker while it still owns the frame
      slot; presenters that keep the frame must copy it
    - release() is called once, during pipeline teardown
"""

import logging
import threading
from typing import Optional, Protocol, Sequence

import cv2
import numpy as np


logger = logging.getLogger(__name__)


class Presenter(Protocol):
    """Protocol for result presenters."""

    def show(self, frame: np.ndarray, status: str) -> None:
        """Display an annotated RGB frame and a status line."""
        ...

    def release(self) -> None:
        """Free display resources."""
        ...


class StatusPresenter:
    """
    In-memory presenter used by the HTTP surface.

    Attributes:
        shown_count: Frames presented so far
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._frame: Optional[np.ndarray] = None
        self._status: str = ""
        self.shown_count = 0
        self.released = False

    def show(self, frame: np.ndarray, status: str) -> None:
        snapshot = frame.copy()
        with self._lock:
            self._frame = snapshot
            self._status = status
            self.shown_count += 1

    @property
    def latest_status(self) -> str:
        with self._lock:
            return self._status

    @property
    def latest_frame(self) -> Optional[np.ndarray]:
        with self._lock:
            return self._frame

    def encode_png(self) -> Optional[bytes]:
        """Latest frame as PNG bytes, or None before the first frame."""
        frame = self.latest_frame
        if frame is None:
            return None
        ok, encoded = cv2.imencode(".png", cv2.cvtColor(frame, cv2.COLOR_RGB2BGR))
        return encoded.tobytes() if ok else None

    def release(self) -> None:
        with self._lock:
            self._frame = None
            self.released = True


class WindowPresenter:
    """Presents frames in a floating OpenCV window."""

    def __init__(self, window_name: str = "maskscan") -> None:
        self.window_name = window_name
        self._opened = False

    def show(self, frame: np.ndarray, status: str) -> None:
        bgr = cv2.cvtColor(frame, cv2.COLOR_RGB2BGR)
        if not self._opened:
            cv2.namedWindow(self.window_name, cv2.WINDOW_AUTOSIZE)
            self._opened = True
        cv2.setWindowTitle(self.window_name, f"{self.window_name} - {status}")
        cv2.imshow(self.window_name, bgr)
        cv2.waitKey(1)

    def release(self) -> None:
        if self._opened:
            cv2.destroyWindow(self.window_name)
            self._opened = False


class PresenterGroup:
    """Forwards every call to each member presenter in order."""

    def __init__(self, presenters: Sequence[Presenter]) -> None:
        self.presenters = list(presenters)

    def show(self, frame: np.ndarray, status: str) -> None:
        for presenter in self.presenters:
            presenter.show(frame, status)

    def release(self) -> None:
        for presenter in self.presenters:
            try:
                presenter.release()
            except Exception as e:
                logger.warning(f"Presenter release failed: {e}")
