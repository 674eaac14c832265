"""
Stream Module
=============

Camera frame ingestion and single-flight admission.

This module provides the ingestion layer for MaskScan:
    - RawFrame / Plane: Camera frame handed over per callback
    - AdmissionGuard: IDLE/PROCESSING compare-and-swap gate
    - FrameSlot: The single reusable buffer set, owned by the ticket holder
    - FrameIngestor: Admission + copy + convert + normalize
    - OpenCVCameraSource: Webcam/video source producing I420 frames

Example:
    from maskscan.stream import FrameIngestor, OpenCVCameraSource

    camera = OpenCVCameraSource(device=0)
    ingestor = FrameIngestor(input_size=224, on_ready=worker.submit)

    while running:
        ingestor.on_frame(camera.acquire_latest_frame())
"""

from maskscan.stream.frame import Plane, RawFrame
from maskscan.stream.admission import AdmissionGuard, AdmissionState, AdmissionTicket
from maskscan.stream.slot import FrameSlot
from maskscan.stream.ingestor import (
    FrameIngestor,
    FrameIngestorMetrics,
    IngestOutcome,
    IngestStatus,
    ProcessedFrame,
)
from maskscan.stream.camera import CameraSource, OpenCVCameraSource, i420_frame_from_bgr


__all__ = [
    "Plane",
    "RawFrame",
    "AdmissionGuard",
    "AdmissionState",
    "AdmissionTicket",
    "FrameSlot",
    "FrameIngestor",
    "FrameIngestorMetrics",
    "IngestOutcome",
    "IngestStatus",
    "ProcessedFrame",
    "CameraSource",
    "OpenCVCameraSource",
    "i420_frame_from_bgr",
]
