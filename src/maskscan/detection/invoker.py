"""
Detection Invoker
=================

Synchronous boundary around the external landmark detector.

This module provides the DetectionInvoker class which:
    - Runs detect() on the calling (worker) thread, blocking until done
    - Counts in-flight calls under a condition variable
    - Implements a shutdown barrier: release() refuses new calls, waits for
      the in-flight count to reach zero, then releases the detector once
    - Wraps detector failures in DetectionError

No timeout is applied; a detector that hangs blocks the worker (and a
concurrent release()) indefinitely.
"""

import logging
import threading
import time
from typing import List, Optional

import numpy as np

from maskscan.detection.engine import LandmarkDetector
from maskscan.models.landmarks import Detection


logger = logging.getLogger(__name__)


class DetectionError(Exception):
    """Raised when the landmark detector fails on a frame."""
    pass


class DetectorClosedError(DetectionError):
    """Raised when detect() is called after release() started."""
    pass


class DetectionInvoker:
    """
    Reference-counted detector gate.

    Attributes:
        call_count: Completed detect() calls (successful or failed)
        error_count: detect() calls that raised
        last_latency: Seconds spent in the most recent detect()

    Example:
        invoker = DetectionInvoker(MockLandmarkDetector())
        detections = invoker.detect(frame)
        ...
        invoker.release()  # waits for in-flight calls
    """

    def __init__(self, detector: LandmarkDetector) -> None:
        self._detector = detector
        self._cond = threading.Condition()
        self._in_flight = 0
        self._closing = False
        self._released = False

        self.call_count = 0
        self.error_count = 0
        self.last_latency: float = 0.0

    @property
    def in_flight(self) -> int:
        return self._in_flight

    @property
    def closed(self) -> bool:
        return self._closing

    def detect(self, frame: np.ndarray) -> List[Detection]:
        """
        Run the detector on one normalized frame.

        Args:
            frame: Normalized RGB frame (N, N, 3)

        Returns:
            Detections (possibly empty)

        Raises:
            DetectorClosedError: If release() has been requested
            DetectionError: If the detector raised
        """
        with self._cond:
            if self._closing:
                raise DetectorClosedError("Detector is shutting down")
            self._in_flight += 1

        start = time.perf_counter()
        try:
            results = self._detector.detect(frame)
        except Exception as e:
            with self._cond:
                self.error_count += 1
            raise DetectionError(f"Landmark detector failed: {e}") from e
        finally:
            latency = time.perf_counter() - start
            with self._cond:
                self._in_flight -= 1
                self.call_count += 1
                self.last_latency = latency
                self._cond.notify_all()

        return list(results) if results is not None else []

    def release(self, timeout: Optional[float] = None) -> bool:
        """
        Refuse new calls, wait for in-flight ones, then release the detector.

        Args:
            timeout: Maximum seconds to wait for in-flight calls (None = forever)

        Returns:
            True if the detector is released, False on timeout
        """
        with self._cond:
            self._closing = True
            if self._released:
                return True
            if self._in_flight:
                logger.info(f"Waiting for {self._in_flight} in-flight detection(s)")
            if not self._cond.wait_for(lambda: self._in_flight == 0, timeout=timeout):
                logger.warning("Timed out waiting for in-flight detections")
                return False

            self._detector.release()
            self._released = True

        logger.info("Landmark detector released")
        return True

    def metrics(self) -> dict:
        """Export invoker counters."""
        return {
            "detect_calls": self.call_count,
            "detect_errors": self.error_count,
            "in_flight": self._in_flight,
            "last_latency_seconds": round(self.last_latency, 4),
            "closed": self._closing,
        }
