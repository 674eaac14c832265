"""
Inference Worker
================

Consumes filled frame slots on a single dedicated thread.

For every slot handed over by the ingestor the worker:
    1. Runs the landmark detector through the DetectionInvoker
    2. Scores every detection with the MaskHeuristicScorer
    3. Annotates the normalized frame in place
    4. Publishes a FrameResult and calls presenter.show()
    5. Releases the slot, returning the admission guard to IDLE

Design Rules:
    - Exactly one worker thread; at most one detection in flight
    - The slot is released on every path, including failures
    - Detector failures skip scoring and annotation, never the release
"""

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import List, Optional

import numpy as np

from maskscan.detection.invoker import DetectionError, DetectionInvoker, DetectorClosedError
from maskscan.models.landmarks import Detection
from maskscan.models.output import FaceResult, FrameResult
from maskscan.observability.overlay import OverlayAnnotator
from maskscan.presenter import Presenter
from maskscan.scoring.heuristic import MaskHeuristicScorer
from maskscan.stream.ingestor import ProcessedFrame
from maskscan.stream.slot import FrameSlot


logger = logging.getLogger(__name__)


class InferenceWorker:
    """
    Single-thread detection, scoring and presentation stage.

    Attributes:
        frames_processed: Slots fully processed
        detection_failures: Frames whose detection raised
    """

    def __init__(
        self,
        invoker: DetectionInvoker,
        scorer: MaskHeuristicScorer,
        presenter: Presenter,
        annotator: Optional[OverlayAnnotator] = None,
    ) -> None:
        self.invoker = invoker
        self.scorer = scorer
        self.presenter = presenter
        self.annotator = annotator or OverlayAnnotator()

        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="inference")
        self._lock = threading.Lock()
        self._latest: Optional[FrameResult] = None

        self.frames_processed = 0
        self.detection_failures = 0

    @property
    def latest_result(self) -> Optional[FrameResult]:
        with self._lock:
            return self._latest

    def submit(self, slot: FrameSlot, frame: ProcessedFrame) -> Future:
        """
        Hand a filled slot to the worker thread.

        Raises:
            RuntimeError: If the worker has been shut down
        """
        return self._executor.submit(self._run, slot, frame)

    def _run(self, slot: FrameSlot, frame: ProcessedFrame) -> Optional[FrameResult]:
        try:
            return self.process(frame.normalized, frame.frame_index)
        except Exception:
            logger.exception(f"Inference failed for frame {frame.frame_index}")
            return None
        finally:
            slot.release()

    def process(self, image: np.ndarray, frame_index: int) -> Optional[FrameResult]:
        """
        Detect, score, annotate and present one normalized frame.

        Args:
            image: Normalized RGB frame; annotated in place
            frame_index: Camera frame counter

        Returns:
            The published FrameResult, or None when the detector is closed
        """
        error: Optional[str] = None
        start = time.perf_counter()
        try:
            detections: List[Detection] = self.invoker.detect(image)
        except DetectorClosedError:
            logger.debug(f"Detector closed, skipping frame {frame_index}")
            return None
        except DetectionError as e:
            detections = []
            error = str(e)
            with self._lock:
                self.detection_failures += 1
            logger.error(f"Detection error (frame={frame_index}): {e}")
        elapsed = time.perf_counter() - start

        # Score every face before any overlay touches the frame
        scores = self.scorer.score_all(detections, image)
        self.annotator.annotate_all(image, detections, scores)
        faces: List[FaceResult] = [
            FaceResult.from_score(detection, score)
            for detection, score in zip(detections, scores)
        ]

        if error is None:
            status = f"Time cost: {elapsed:.3f} sec"
        else:
            status = f"Detection failed: {error}"

        result = FrameResult(
            frame_index=frame_index,
            timestamp=time.time(),
            detection_seconds=elapsed,
            status=status,
            detector_error=error,
            faces=faces,
        )

        with self._lock:
            self._latest = result
            self.frames_processed += 1

        self.presenter.show(image, status)

        logger.debug(
            f"Frame {frame_index}: {len(faces)} face(s), detection {elapsed:.3f}s"
        )
        return result

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting slots; optionally wait for the current one."""
        self._executor.shutdown(wait=wait)

    def metrics(self) -> dict:
        with self._lock:
            return {
                "frames_processed": self.frames_processed,
                "detection_failures": self.detection_failures,
            }
