"""Configuration loading — config/config.toml into an immutable LooperConfig."""

import logging
import os
from pathlib import Path
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from lib.paths import PROJECT_ROOT, resolve_path

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = PROJECT_ROOT / "config" / "config.toml"


class LooperConfig(BaseModel):
    """Read-only process-wide settings shared by every job."""

    model_config = ConfigDict(frozen=True)

    # [paths]
    upload_dir: Path
    output_dir: Path
    temp_dir: Path

    # [tools]
    ffmpeg_bin: str = "ffmpeg"
    ffprobe_bin: str = "ffprobe"
    command_timeout_seconds: Optional[float] = None

    # [limits]
    min_loops: int = 1
    max_loops: int = 1000
    max_file_size_mb: int = 500
    allowed_video_types: Tuple[str, ...] = ("video/mp4",)
    allowed_audio_types: Tuple[str, ...] = ("audio/mpeg", "audio/wav", "audio/mp3")
    max_concurrent_jobs: int = Field(default=0, ge=0)
    stderr_excerpt_chars: int = 300

    # [encoding]
    target_width: int = 1920
    target_height: int = 1080
    video_codec: str = "libx264"
    video_preset: str = "medium"
    video_crf: int = 23
    audio_codec: str = "aac"
    audio_bitrate: str = "192k"

    @property
    def max_file_size_bytes(self) -> int:
        return self.max_file_size_mb * 1024 * 1024

    def concurrency_limit(self) -> int:
        """Number of jobs allowed to run encoder stages at once (0 → CPU count)."""
        if self.max_concurrent_jobs > 0:
            return self.max_concurrent_jobs
        return os.cpu_count() or 1

    @classmethod
    def from_dict(cls, data: dict) -> "LooperConfig":
        """Flatten the sectioned TOML layout into a LooperConfig."""
        paths = data.get("paths", {})
        tools = dict(data.get("tools", {}))
        limits = dict(data.get("limits", {}))
        encoding = dict(data.get("encoding", {}))

        # TOML has no null; 0 means "no timeout"
        if not tools.get("command_timeout_seconds"):
            tools["command_timeout_seconds"] = None
        for key in ("allowed_video_types", "allowed_audio_types"):
            if key in limits:
                limits[key] = tuple(limits[key])

        return cls(
            upload_dir=resolve_path("upload_dir", paths.get("upload_dir", "")),
            output_dir=resolve_path("output_dir", paths.get("output_dir", "")),
            temp_dir=resolve_path("temp_dir", paths.get("temp_dir", "")),
            **tools,
            **limits,
            **encoding,
        )


def load_config(path: Optional[Path] = None) -> LooperConfig:
    """Load config.toml (default: PROJECT_ROOT/config/config.toml).

    A missing file yields the built-in defaults.
    """
    try:
        import tomllib
    except ImportError:
        import tomli as tomllib

    config_path = Path(path) if path else DEFAULT_CONFIG_PATH
    if not config_path.exists():
        logger.debug("No config file at %s, using defaults", config_path)
        return LooperConfig.from_dict({})
    with open(config_path, "rb") as f:
        return LooperConfig.from_dict(tomllib.load(f))
