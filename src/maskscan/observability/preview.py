"""
Preview Writer
==============

Debug dump of normalized frames to disk.

GATED BY CONFIG FLAG (debug.save_preview). Zero cost when disabled.
Write failures are logged and never abort the frame.
"""

import logging
from pathlib import Path
from typing import Optional

import cv2
import numpy as np


logger = logging.getLogger(__name__)


class PreviewWriter:
    """
    Writes RGB frames as PNG files named by frame index.

    Attributes:
        directory: Output directory (created on first write)
        written_count: Number of files written
    """

    def __init__(self, directory: str) -> None:
        self.directory = Path(directory)
        self.written_count = 0
        logger.info(f"PreviewWriter enabled: directory={self.directory}")

    def write(self, frame: np.ndarray, frame_index: int) -> Optional[Path]:
        """
        Save one RGB frame.

        Returns:
            Path written, or None if the write failed
        """
        path = self.directory / f"preview_{frame_index:06d}.png"
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            bgr = cv2.cvtColor(frame, cv2.COLOR_RGB2BGR)
            if not cv2.imwrite(str(path), bgr):
                logger.warning(f"cv2.imwrite refused {path}")
                return None
        except (OSError, cv2.error) as e:
            logger.warning(f"Failed to save preview {path}: {e}")
            return None

        self.written_count += 1
        return path
