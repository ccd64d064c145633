"""Centralized path resolution for Looper."""

import os
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Environment variable overrides, keyed by the [paths] entry they replace
ENV_OVERRIDES = {
    "upload_dir": "LOOPER_UPLOAD_DIR",
    "output_dir": "LOOPER_OUTPUT_DIR",
    "temp_dir": "LOOPER_TEMP_DIR",
}

DEFAULT_DIRS = {
    "upload_dir": "uploads",
    "output_dir": "public/processed",
    "temp_dir": "uploads/tmp",
}


def get_project_root() -> Path:
    """Return the project root directory."""
    return PROJECT_ROOT


def resolve_path(key: str, configured_path: str = "") -> Path:
    """Resolve one of the working directories.

    Environment variable overrides always win. Otherwise an absolute
    configured path is used as-is and a relative one resolves under
    PROJECT_ROOT. With nothing configured, the default layout applies.

    Args:
        key: One of "upload_dir", "output_dir", "temp_dir".
        configured_path: Value from config.toml (may be empty).
    """
    env_var = ENV_OVERRIDES.get(key)
    if env_var:
        env_val = os.getenv(env_var, "")
        if env_val:
            return Path(env_val)

    p = Path(configured_path or DEFAULT_DIRS[key])
    if p.is_absolute():
        return p
    return PROJECT_ROOT / p


def ensure_dirs(*dirs: Path):
    """Create working directories if they don't exist yet."""
    for d in dirs:
        Path(d).mkdir(parents=True, exist_ok=True)
