"""Shared encoder argument selection for the compose stage."""

from lib.config import LooperConfig
from lib.models import ResolutionMode


def get_video_encoder_args(config: LooperConfig, mode: ResolutionMode) -> list:
    """Return ffmpeg video arguments for the requested resolution mode.

    Preserve: ["-c:v", "copy"]
    FullHD:   ["-vf", "scale=1920:1080", "-c:v", "libx264", "-preset", "medium", "-crf", "23"]
    """
    if ResolutionMode(mode) is ResolutionMode.PRESERVE:
        return ["-c:v", "copy"]

    return [
        "-vf", f"scale={config.target_width}:{config.target_height}",
        "-c:v", config.video_codec,
        "-preset", config.video_preset,
        "-crf", str(config.video_crf),
    ]


def get_audio_encoder_args(config: LooperConfig) -> list:
    """Audio is always re-encoded to a fixed codec/bitrate."""
    return ["-c:a", config.audio_codec, "-b:a", config.audio_bitrate]


def format_duration(seconds: float) -> str:
    """Format a duration cap for -t with millisecond precision."""
    return f"{seconds:.3f}"
