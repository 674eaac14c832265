"""
Model Provisioning
==================

Makes sure the landmark model exists where the detector expects it.

If the model file is missing it is copied from a bundled resource. A
missing bundle or a failed copy is an initialization error surfaced to the
caller; the pipeline does not start without its model.
"""

import logging
import shutil
from pathlib import Path
from typing import Optional


logger = logging.getLogger(__name__)


class ModelProvisioningError(Exception):
    """Raised when the landmark model cannot be made available."""
    pass


class ModelProvisioner:
    """
    Ensures a model file exists at model_path.

    Attributes:
        model_path: Where the detector loads the model from
        bundled_path: Resource copied to model_path when it is absent
    """

    def __init__(self, model_path: str, bundled_path: Optional[str] = None) -> None:
        self.model_path = Path(model_path)
        self.bundled_path = Path(bundled_path) if bundled_path else None

    def ensure(self) -> Path:
        """
        Return the model path, copying the bundled model first if needed.

        Raises:
            ModelProvisioningError: If the model is absent and cannot be copied
        """
        if self.model_path.is_file():
            return self.model_path

        if self.bundled_path is None or not self.bundled_path.is_file():
            raise ModelProvisioningError(
                f"Landmark model missing at {self.model_path} "
                f"and no bundled copy at {self.bundled_path}"
            )

        logger.warning(f"Copying landmark model to {self.model_path}")
        tmp_path = self.model_path.with_name(self.model_path.name + ".part")
        try:
            self.model_path.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(self.bundled_path, tmp_path)
            tmp_path.replace(self.model_path)
        except OSError as e:
            if tmp_path.exists():
                tmp_path.unlink()
            raise ModelProvisioningError(
                f"Failed to copy {self.bundled_path} to {self.model_path}: {e}"
            ) from e

        logger.info(f"Landmark model ready at {self.model_path}")
        return self.model_path
