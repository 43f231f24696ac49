"""
ivf-scorer Configuration
========================

This module handles configuration loading for the IVF repair and scoring pipeline.

Configuration Sources (in order of precedence):
    1. Environment variables (highest priority)
    2. config.yaml file
    3. Default values (lowest priority)

Environment Variable Mapping:
    IVF_SCORER_RECOGNITION_BACKEND -> recognition.backend
    IVF_SCORER_WORKERS             -> recognition.workers
    IVF_SCORER_TESSERACT_CMD       -> recognition.tesseract_cmd
    IVF_SCORER_FFMPEG              -> scoring.ffmpeg_path
    IVF_SCORER_VMAF_MODEL          -> scoring.model_path
    IVF_SCORER_PREVIEW             -> scoring.preview
    IVF_SCORER_KEEP_INTERMEDIATE   -> scoring.keep_intermediate_files
    IVF_SCORER_LOG_LEVEL           -> logging.level
    PORT                           -> server.port

Example:
    from ivf_scorer.config import settings

    print(settings.recognition.backend)
    print(settings.scoring.model_path)
"""

import os
import logging
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field


logger = logging.getLogger(__name__)


_TRUTHY = {"1", "true", "yes", "on"}


# =============================================================================
# Configuration Models
# =============================================================================

class ServiceConfig(BaseModel):
    """Service identification configuration."""

    name: str = Field(default="ivf-scorer", description="Service name")
    version: str = Field(default="v0.1.0", description="Service version")


class VisionRecognitionConfig(BaseModel):
    """Google Cloud Vision recognizer configuration."""

    credentials_path: Optional[str] = Field(
        default=None,
        description="Path to service account JSON (None = default credentials)",
    )


class RecognitionConfig(BaseModel):
    """Overlay text recognition configuration."""

    backend: str = Field(
        default="tesseract",
        description="Recognition backend: 'tesseract' or 'vision'",
    )
    workers: int = Field(
        default=0,
        ge=0,
        description="Concurrent recognition tasks (0 = CPU count)",
    )
    confidence_threshold: float = Field(
        default=75.0,
        ge=0,
        le=100,
        description="Minimum confidence (0-100) for an accepted recognition",
    )
    clock_charset: str = Field(
        default="0123456789",
        description="Characters allowed in the clock overlay",
    )
    name_charset: str = Field(
        default="Participant-0123456789s",
        description="Characters allowed in the participant name label",
    )
    tesseract_cmd: Optional[str] = Field(
        default=None,
        description="Path to the tesseract binary (None = search PATH)",
    )
    vision: VisionRecognitionConfig = Field(default_factory=VisionRecognitionConfig)


class RepairConfig(BaseModel):
    """Frame repair configuration."""

    max_gap_seconds: float = Field(
        default=3600.0,
        gt=0,
        description="Largest gap (in seconds of frames) that may be filled",
    )


class ScoringConfig(BaseModel):
    """VMAF scoring configuration."""

    ffmpeg_path: str = Field(default="ffmpeg", description="ffmpeg executable")
    model_path: str = Field(
        default="/usr/share/model/vmaf_v0.6.1.json",
        description="libvmaf model file",
    )
    threads: int = Field(
        default=0,
        ge=0,
        description="ffmpeg/libvmaf threads (0 = CPU count)",
    )
    preview: bool = Field(
        default=False,
        description="Also render a side-by-side comparison video",
    )
    keep_intermediate_files: bool = Field(
        default=False,
        description="Keep repaired IVF files after scoring",
    )
    output_subdir: str = Field(
        default="vmaf",
        description="Output directory created inside the scanned directory",
    )
    extension: str = Field(default=".ivf", description="Capture file extension")


class ServerConfig(BaseModel):
    """Server configuration."""

    host: str = Field(default="0.0.0.0", description="Bind host")
    port: int = Field(default=8002, ge=1, le=65535, description="Bind port")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="text", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for ivf-scorer.

    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """

    service: ServiceConfig = Field(default_factory=ServiceConfig)
    recognition: RecognitionConfig = Field(default_factory=RecognitionConfig)
    repair: RepairConfig = Field(default_factory=RepairConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def worker_count(self) -> int:
        """Recognition pool size, resolved against the CPU count."""
        return self.recognition.workers or os.cpu_count() or 1

    @property
    def thread_count(self) -> int:
        return self.scoring.threads or os.cpu_count() or 1


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
        logger.debug("No config file found, using defaults and environment variables")

    _apply_env_overrides(config_data)

    return Settings.model_validate(config_data)


def _apply_env_overrides(config_data: dict) -> None:
    """Apply environment variable overrides to config data."""

    # Recognition settings
    if env_backend := os.environ.get("IVF_SCORER_RECOGNITION_BACKEND"):
        config_data.setdefault("recognition", {})["backend"] = env_backend
    if env_workers := os.environ.get("IVF_SCORER_WORKERS"):
        config_data.setdefault("recognition", {})["workers"] = int(env_workers)
    if env_tess := os.environ.get("IVF_SCORER_TESSERACT_CMD"):
        config_data.setdefault("recognition", {})["tesseract_cmd"] = env_tess

    # Scoring settings
    if env_ffmpeg := os.environ.get("IVF_SCORER_FFMPEG"):
        config_data.setdefault("scoring", {})["ffmpeg_path"] = env_ffmpeg
    if env_model := os.environ.get("IVF_SCORER_VMAF_MODEL"):
        config_data.setdefault("scoring", {})["model_path"] = env_model
    if env_preview := os.environ.get("IVF_SCORER_PREVIEW"):
        config_data.setdefault("scoring", {})["preview"] = env_preview.lower() in _TRUTHY
    if env_keep := os.environ.get("IVF_SCORER_KEEP_INTERMEDIATE"):
        config_data.setdefault("scoring", {})["keep_intermediate_files"] = (
            env_keep.lower() in _TRUTHY
        )

    # Server settings
    if env_port := os.environ.get("PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)

    # Logging settings
    if env_log := os.environ.get("IVF_SCORER_LOG_LEVEL"):
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

# Loaded on import; entry points call setup_logging() themselves
settings = load_config()
