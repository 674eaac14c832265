"""
MaskScan
========

Real-time face-covering heuristic over a camera stream.

Frames arrive as YUV 4:2:0, are converted to RGB, normalized into a square
detector input, run through a 68-point face-landmark detector, and scored
by comparing the hue above the eyes with the hue at the mouth corners.

Components:
    - stream: Camera sources, admission control and frame ingestion
    - imaging: YUV -> RGB conversion and square normalization
    - detection: Landmark detector backends and the invoker barrier
    - scoring: Hue-comparison mask heuristic
    - pipeline: Inference worker and end-to-end wiring
    - observability: Overlay annotation and debug previews

Example:
    from maskscan.config import settings
    from maskscan.pipeline import MaskScanPipeline

    # The service is started via the FastAPI application
    # See main.py for entry point
"""

__version__ = "0.1.0"
__author__ = "MaskScan Project"

__all__ = [
    "__version__",
]
