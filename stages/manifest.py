"""Manifest stage — write the concat-demuxer file list for the loop pass.

Inputs:
    - request.video.path, request.loop_count
Outputs:
    - concat_<job id>_*.txt in the temp dir (one `file '...'` line per loop)
"""

import os
import tempfile
from pathlib import Path

from lib.errors import ManifestWriteFailure
from lib.models import ProcessingJob
from stages.base import BaseStage


def concat_directive(video_path: Path) -> str:
    """Return one concat-list line for an absolute path.

    The concat parser wants forward slashes on every platform; single
    quotes inside the path are closed, escaped and reopened.
    """
    posix = str(video_path).replace("\\", "/")
    safe_path = posix.replace("'", "'\\''")
    return f"file '{safe_path}'\n"


class ManifestBuilder(BaseStage):
    name = "manifest"

    def build(self, video_path: Path, loop_count: int, prefix: str = "concat_") -> Path:
        """Write `loop_count` identical directives to a fresh temp file."""
        abs_path = Path(video_path).resolve()
        if "\n" in str(abs_path) or "\r" in str(abs_path):
            raise ManifestWriteFailure(f"Video path contains a line break: {abs_path!r}")
        line = concat_directive(abs_path)

        temp_dir = Path(self.config.temp_dir)
        try:
            temp_dir.mkdir(parents=True, exist_ok=True)
            fd, name = tempfile.mkstemp(prefix=prefix, suffix=".txt", dir=str(temp_dir))
        except OSError as e:
            raise ManifestWriteFailure(f"Could not create concatenation file in {temp_dir}: {e}") from e

        manifest_path = Path(name)
        self.logger.info(f"Creating concatenation file: {manifest_path}")
        try:
            # surrogateescape round-trips undecodable bytes from the file system name
            with os.fdopen(fd, "w", encoding="utf-8", errors="surrogateescape", newline="\n") as f:
                for _ in range(loop_count):
                    f.write(line)
            with open(manifest_path, encoding="utf-8", errors="surrogateescape") as f:
                written = sum(1 for _ in f)
        except (OSError, UnicodeError) as e:
            self._discard(manifest_path)
            raise ManifestWriteFailure(f"Could not write concatenation file {manifest_path}: {e}") from e

        if written != loop_count:
            self._discard(manifest_path)
            raise ManifestWriteFailure(
                f"Expected {loop_count} lines in concat file, but found {written}"
            )
        self.logger.info(f"Concatenation file created with {written} lines.")
        return manifest_path

    def _discard(self, path: Path):
        try:
            if path.exists():
                path.unlink()
        except OSError as e:
            self.logger.warning(f"Could not remove partial concatenation file {path}: {e}")

    async def execute(self, job: ProcessingJob) -> Path:
        path = self.build(job.request.video.path, job.request.loop_count, prefix=f"concat_{job.id}_")
        job.manifest_path = path
        return path
