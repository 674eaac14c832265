"""
Observability Module
====================

Annotation and debug artifacts for MaskScan.

This module provides:
    - OverlayAnnotator: Draws boxes and scores onto the presented frame
    - PreviewWriter: Dumps normalized frames to disk (gated)

DESIGN RULES:
    - Does NOT influence scoring
    - Zero cost when preview is disabled
"""

from maskscan.observability.overlay import OverlayAnnotator
from maskscan.observability.preview import PreviewWriter


__all__ = [
    "OverlayAnnotator",
    "PreviewWriter",
]
