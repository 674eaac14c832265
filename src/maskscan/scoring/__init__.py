"""
Scoring Module
==============

Color heuristics computed over detected landmarks.
"""

from maskscan.scoring.heuristic import (
    MASK_REGIONS,
    MaskHeuristicScorer,
    average_hue,
    hue_channel,
)

__all__ = [
    "MASK_REGIONS",
    "MaskHeuristicScorer",
    "average_hue",
    "hue_channel",
]
