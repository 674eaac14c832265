"""
MaskScan Configuration
======================

This module handles configuration loading for the mask-scan pipeline.

Configuration Sources (in order of precedence):
    1. Environment variables (highest priority)
    2. config.yaml file
    3. Default values (lowest priority)

Environment Variable Mapping:
    MASKSCAN_INPUT_SIZE          -> pipeline.input_size
    MASKSCAN_CAMERA_DEVICE       -> camera.device
    MASKSCAN_DETECTOR_BACKEND    -> detector.backend
    MASKSCAN_MODEL_PATH          -> detector.model_path
    MASKSCAN_BUNDLED_MODEL_PATH  -> detector.bundled_model_path
    MASKSCAN_SAVE_PREVIEW        -> debug.save_preview
    MASKSCAN_PORT                -> server.port
    MASKSCAN_LOG_LEVEL           -> logging.level
    PORT                         -> server.port (container platforms)

Example:
    from maskscan.config import settings

    print(settings.pipeline.input_size)
    print(settings.detector.backend)
"""

import os
import logging
from pathlib import Path
from typing import Optional, Union

import yaml
from pydantic import BaseModel, Field


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Models
# =============================================================================

class AppConfig(BaseModel):
    """Application identification configuration."""

    name: str = Field(default="maskscan", description="Service name")
    version: str = Field(default="v0.1.0", description="Service version")


class PipelineConfig(BaseModel):
    """Frame pipeline configuration."""

    input_size: int = Field(
        default=224,
        ge=16,
        le=2048,
        description="Side of the square frame handed to the landmark detector",
    )
    swap_uv: bool = Field(
        default=False,
        description="Read the chroma planes in V/U order instead of U/V",
    )


class CameraConfig(BaseModel):
    """Camera source configuration."""

    device: Union[int, str] = Field(
        default=0,
        description="cv2.VideoCapture device index or video file path",
    )
    display_width: int = Field(
        default=640,
        ge=1,
        description="Display width used to derive the frame rotation",
    )
    display_height: int = Field(
        default=480,
        ge=1,
        description="Display height used to derive the frame rotation",
    )


class DetectorConfig(BaseModel):
    """Landmark detector configuration."""

    backend: str = Field(
        default="mock",
        description="Detector backend: 'mock' or 'dlib'",
    )
    model_path: str = Field(
        default="./data/shape_predictor_68_face_landmarks.dat",
        description="Where the detector expects its landmark model",
    )
    bundled_model_path: Optional[str] = Field(
        default=None,
        description="Bundled model copied to model_path when it is missing",
    )


class DebugConfig(BaseModel):
    """Debug artifacts configuration."""

    save_preview: bool = Field(
        default=False,
        description="Write every normalized frame to preview_dir",
    )
    preview_dir: str = Field(
        default="./data/preview",
        description="Directory for preview images",
    )


class PresenterConfig(BaseModel):
    """Result presenter configuration."""

    show_window: bool = Field(
        default=False,
        description="Display annotated frames in an OpenCV window",
    )


class ServerConfig(BaseModel):
    """Server configuration."""

    host: str = Field(default="0.0.0.0", description="Bind host")
    port: int = Field(default=8002, ge=1, le=65535, description="Bind port")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="json", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for MaskScan.

    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """

    app: AppConfig = Field(default_factory=AppConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    camera: CameraConfig = Field(default_factory=CameraConfig)
    detector: DetectorConfig = Field(default_factory=DetectorConfig)
    debug: DebugConfig = Field(default_factory=DebugConfig)
    presenter: PresenterConfig = Field(default_factory=PresenterConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# Configuration Loading
# =============================================================================

def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Load configuration from YAML file and environment variables.

    Priority (highest to lowest):
        1. Environment variables
        2. YAML config file
        3. Default values

    Args:
        config_path: Path to config.yaml. If None, searches common locations.

    Returns:
        Settings: Loaded configuration
    """
    if config_path is None:
        search_paths = [
            Path("config.yaml"),
            Path("config.yml"),
            Path("/app/config.yaml"),
            Path(__file__).parent.parent.parent / "config.yaml",
        ]
        for path in search_paths:
            if path.exists():
                config_path = str(path)
                break

    config_data = {}
    if config_path and Path(config_path).exists():
        logger.info(f"Loading config from: {config_path}")
        with open(config_path, "r") as f:
            config_data = yaml.safe_load(f) or {}
    else:
        logger.warning("No config file found, using defaults and environment variables")

    _apply_env_overrides(config_data)

    return Settings.model_validate(config_data)


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _parse_device(value: str) -> Union[int, str]:
    return int(value) if value.isdigit() else value


def _apply_env_overrides(config_data: dict) -> None:
    """Apply environment variable overrides to config data."""

    # Pipeline settings
    if env_size := os.environ.get("MASKSCAN_INPUT_SIZE"):
        config_data.setdefault("pipeline", {})["input_size"] = int(env_size)

    # Camera settings
    if env_device := os.environ.get("MASKSCAN_CAMERA_DEVICE"):
        config_data.setdefault("camera", {})["device"] = _parse_device(env_device)

    # Detector settings
    if env_backend := os.environ.get("MASKSCAN_DETECTOR_BACKEND"):
        config_data.setdefault("detector", {})["backend"] = env_backend
    if env_model := os.environ.get("MASKSCAN_MODEL_PATH"):
        config_data.setdefault("detector", {})["model_path"] = env_model
    if env_bundled := os.environ.get("MASKSCAN_BUNDLED_MODEL_PATH"):
        config_data.setdefault("detector", {})["bundled_model_path"] = env_bundled

    # Debug settings
    if env_preview := os.environ.get("MASKSCAN_SAVE_PREVIEW"):
        config_data.setdefault("debug", {})["save_preview"] = _parse_bool(env_preview)

    # Server settings (container platforms use PORT)
    if env_port := os.environ.get("PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)
    elif env_port := os.environ.get("MASKSCAN_PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)

    # Logging settings
    if env_log := os.environ.get("MASKSCAN_LOG_LEVEL"):
        config_data.setdefault("logging", {})["level"] = env_log


def setup_logging(settings: Settings) -> None:
    """Configure logging based on settings."""
    log_level = getattr(logging, settings.logging.level.upper(), logging.INFO)

    if settings.logging.format == "json":
        log_format = '{"time": "%(asctime)s", "level": "%(levelname)s", "module": "%(name)s", "message": "%(message)s"}'
    else:
        log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
    )


# =============================================================================
# Global Settings Instance
# =============================================================================

# Global settings instance - loaded on import
settings = load_config()
setup_logging(settings)
