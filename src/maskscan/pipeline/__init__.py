"""
Pipeline Module
===============

End-to-end wiring of the MaskScan stages.

Components:
    - InferenceWorker: Detect, score, annotate and present on one thread
    - MaskScanPipeline: Ingestor + worker + teardown barrier
    - CameraLoop: Daemon thread feeding camera frames to the pipeline
    - create_detector: Backend factory driven by config
"""

from maskscan.pipeline.worker import InferenceWorker
from maskscan.pipeline.runner import CameraLoop, MaskScanPipeline, create_detector

__all__ = [
    "InferenceWorker",
    "CameraLoop",
    "MaskScanPipeline",
    "create_detector",
]
