"""Janitor — scoped cleanup of a job's temporary artifacts."""

import logging
from pathlib import Path

from lib.errors import CleanupWarning
from lib.models import ProcessingJob

logger = logging.getLogger("looper.janitor")


class Janitor:
    """Removes every registered artifact when the scope exits, exactly once.

    Usage:
        with Janitor(job) as janitor:
            janitor.register(path)
            ...

    Missing files are skipped. Deletion errors become CleanupWarnings on the
    job and never replace the job's own outcome.
    """

    def __init__(self, job: ProcessingJob):
        self.job = job
        self._released = False

    def register(self, path: Path) -> Path:
        path = Path(path)
        self.job.temp_artifacts.add(path)
        return path

    def release(self) -> list:
        if self._released:
            return []
        self._released = True

        warnings = []
        for path in sorted(self.job.temp_artifacts):
            try:
                if path.exists():
                    path.unlink()
                    logger.info(f"Deleted temporary file: {path}")
            except OSError as e:
                warning = CleanupWarning(path, e)
                logger.warning(f"Warning: {warning}")
                warnings.append(warning)
        self.job.cleanup_warnings.extend(warnings)
        return warnings

    def __enter__(self) -> "Janitor":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return False
