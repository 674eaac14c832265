"""
MaskScan Pipeline
=================

Wires camera ingestion, detection, scoring and presentation together.

Threads of control:
    - Camera thread: CameraLoop -> MaskScanPipeline.on_image_available()
      -> FrameIngestor (admission, copy, convert, normalize)
    - Inference worker: InferenceWorker (detect, score, annotate, present)

While the worker processes frame K, frame K+1 is dropped, not queued.

Design Rules:
    - close() stops intake before touching the detector
    - The detector is released only after in-flight detections finish
    - Provisioning and backend errors surface at startup, not per frame
"""

import logging
import threading
from typing import Optional

from maskscan.config import Settings
from maskscan.detection import (
    DetectionInvoker,
    DlibLandmarkDetector,
    LandmarkDetector,
    MockLandmarkDetector,
    ModelProvisioner,
)
from maskscan.imaging.geometry import DisplayOrientation, OrientationSource
from maskscan.observability.overlay import OverlayAnnotator
from maskscan.observability.preview import PreviewWriter
from maskscan.models.output import FrameResult
from maskscan.pipeline.worker import InferenceWorker
from maskscan.presenter import Presenter
from maskscan.scoring.heuristic import MaskHeuristicScorer
from maskscan.stream.camera import CameraSource
from maskscan.stream.frame import RawFrame
from maskscan.stream.ingestor import FrameIngestor, IngestOutcome, IngestStatus


logger = logging.getLogger(__name__)

# Dropped frames between "busy" warnings
DROP_WARNING_INTERVAL = 100


def create_detector(settings: Settings) -> LandmarkDetector:
    """
    Create the landmark detector selected by config.

    The dlib backend provisions its model file first.

    Raises:
        ModelProvisioningError: If the model file cannot be put in place
        DlibDetectorError: If dlib is not installed or cannot load the model
        ValueError: On an unknown backend name
    """
    backend = settings.detector.backend

    if backend == "mock":
        logger.info("Using MockLandmarkDetector")
        return MockLandmarkDetector(input_size=settings.pipeline.input_size)

    elif backend == "dlib":
        provisioner = ModelProvisioner(
            model_path=settings.detector.model_path,
            bundled_path=settings.detector.bundled_model_path,
        )
        model_path = provisioner.ensure()
        logger.info(f"Using DlibLandmarkDetector: model={model_path}")
        return DlibLandmarkDetector(str(model_path))

    else:
        raise ValueError(f"Unknown detector backend: {backend}")


class MaskScanPipeline:
    """
    Camera-to-presenter pipeline with single-flight admission.

    Attributes:
        ingestor: Camera-thread stage
        invoker: Detector barrier
        worker: Inference stage
        presenter: Display target

    Example:
        pipeline = MaskScanPipeline(MockLandmarkDetector(), StatusPresenter())
        pipeline.on_image_available(camera)
        pipeline.wait_idle(timeout=1.0)
        pipeline.close()
    """

    def __init__(
        self,
        detector: LandmarkDetector,
        presenter: Presenter,
        input_size: int = 224,
        orientation: Optional[OrientationSource] = None,
        swap_uv: bool = False,
        preview: Optional[PreviewWriter] = None,
        annotator: Optional[OverlayAnnotator] = None,
    ) -> None:
        self.presenter = presenter
        self.invoker = DetectionInvoker(detector)
        self.scorer = MaskHeuristicScorer()
        self.worker = InferenceWorker(
            self.invoker,
            self.scorer,
            presenter,
            annotator=annotator,
        )
        self.ingestor = FrameIngestor(
            input_size=input_size,
            orientation=orientation,
            swap_uv=swap_uv,
            on_ready=self.worker.submit,
            preview=preview,
        )

        self._lock = threading.Lock()
        self._closed = False

        logger.info(f"MaskScanPipeline initialized: input_size={input_size}")

    @classmethod
    def from_settings(cls, settings: Settings, presenter: Presenter) -> "MaskScanPipeline":
        """Build a pipeline, its detector and preview writer from config."""
        detector = create_detector(settings)
        preview = None
        if settings.debug.save_preview:
            preview = PreviewWriter(settings.debug.preview_dir)

        return cls(
            detector=detector,
            presenter=presenter,
            input_size=settings.pipeline.input_size,
            orientation=DisplayOrientation(
                settings.camera.display_width,
                settings.camera.display_height,
            ),
            swap_uv=settings.pipeline.swap_uv,
            preview=preview,
        )

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def latest_result(self) -> Optional[FrameResult]:
        return self.worker.latest_result

    def on_frame(self, raw: Optional[RawFrame]) -> IngestOutcome:
        """Feed one frame; frames arriving after close() are dropped."""
        if self._closed:
            if raw is not None:
                raw.release()
            return IngestOutcome(IngestStatus.DROPPED)

        outcome = self.ingestor.on_frame(raw)

        if outcome.status is IngestStatus.DROPPED:
            dropped = self.ingestor.metrics.frames_dropped
            if dropped % DROP_WARNING_INTERVAL == 0:
                logger.warning(f"Inference busy: {dropped} frames dropped so far")
        return outcome

    def on_image_available(self, camera: CameraSource) -> IngestOutcome:
        """
        Camera callback: acquire the newest frame and ingest it.

        Acquisition failures are logged and reported as EMPTY.
        """
        try:
            raw = camera.acquire_latest_frame()
        except Exception as e:
            logger.warning(f"Frame acquisition failed: {e}")
            raw = None
        return self.on_frame(raw)

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until no frame is being processed."""
        return self.ingestor.guard.wait_idle(timeout)

    def close(self, timeout: Optional[float] = None) -> bool:
        """
        Stop intake and tear down detector, presenter and worker.

        Args:
            timeout: Maximum seconds to wait for an in-flight detection

        Returns:
            True if the detector was released
        """
        with self._lock:
            if self._closed:
                return self.invoker.release(timeout=timeout)
            self._closed = True

        logger.info("Closing MaskScanPipeline...")
        released = self.invoker.release(timeout=timeout)
        self.worker.shutdown(wait=released)
        self.presenter.release()
        logger.info("MaskScanPipeline closed")
        return released

    def metrics(self) -> dict:
        """Combined ingestor, admission, slot, invoker and worker counters."""
        return {
            "ingestor": self.ingestor.metrics.to_dict(),
            "admission": self.ingestor.guard.metrics(),
            "slot": self.ingestor.slot.metrics(),
            "detector": self.invoker.metrics(),
            "worker": self.worker.metrics(),
            "closed": self._closed,
        }


class CameraLoop:
    """
    Daemon thread polling a CameraSource into the pipeline.

    Sleeps briefly when the camera has no frame ready.
    """

    def __init__(
        self,
        camera: CameraSource,
        pipeline: MaskScanPipeline,
        idle_sleep: float = 0.005,
    ) -> None:
        self.camera = camera
        self.pipeline = pipeline
        self.idle_sleep = idle_sleep
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="camera", daemon=True)
        self._thread.start()
        logger.info("Camera loop started")

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None
        logger.info("Camera loop stopped")

    def _run(self) -> None:
        while not self._stop.is_set() and not self.pipeline.closed:
            outcome = self.pipeline.on_image_available(self.camera)
            if outcome.status is IngestStatus.EMPTY:
                self._stop.wait(self.idle_sleep)
