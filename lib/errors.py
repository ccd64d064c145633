"""Error taxonomy for the loop pipeline.

Every failure a job can end in is a LooperError. Subprocess-backed errors carry
the captured stderr/stdout so the orchestrator can attach a diagnostic excerpt
to the message the caller sees.
"""

from pathlib import Path
from typing import Optional


class LooperError(Exception):
    """Base class for all pipeline failures."""

    def __init__(self, message: str, stderr: str = "", stdout: str = ""):
        super().__init__(message)
        self.message = message
        self.stderr = stderr or ""
        self.stdout = stdout or ""


class InvalidLoopCount(LooperError):
    def __init__(self, loop_count, min_loops: int = 1, max_loops: int = 1000):
        super().__init__(
            f"Number of loops must be an integer between {min_loops} and {max_loops} "
            f"(got {loop_count!r})."
        )
        self.loop_count = loop_count


class InputNotFound(LooperError):
    def __init__(self, path: Path, kind: str):
        super().__init__(f"Input {kind} file not found at '{path}'")
        self.path = Path(path)
        self.kind = kind


class ProbeFailure(LooperError):
    pass


class ManifestWriteFailure(LooperError):
    pass


class CommandFailure(LooperError):
    def __init__(self, tool: str, exit_code: Optional[int], stderr: str = "", stdout: str = ""):
        super().__init__(f'Command "{tool}" failed with code {exit_code}.', stderr, stdout)
        self.tool = tool
        self.exit_code = exit_code


class CommandTimeout(LooperError):
    def __init__(self, tool: str, timeout: float, stderr: str = "", stdout: str = ""):
        super().__init__(f'Command "{tool}" timed out after {timeout:g}s.', stderr, stdout)
        self.tool = tool
        self.timeout = timeout


class LaunchFailure(LooperError):
    def __init__(self, tool: str, cause: BaseException):
        super().__init__(
            f'Failed to start subprocess for "{tool}": {cause}. '
            f"Ensure FFmpeg/ffprobe is installed and on the PATH."
        )
        self.tool = tool
        self.cause = cause


class JobCancelled(LooperError):
    def __init__(self, job_id: str):
        super().__init__(f"Job {job_id} was cancelled")
        self.job_id = job_id


class JobFailed(LooperError):
    """Raised by LoopPipeline.process() when a job ends in the failed state."""

    def __init__(self, job):
        cause = job.error
        super().__init__(
            job.error_message or str(cause),
            getattr(cause, "stderr", ""),
            getattr(cause, "stdout", ""),
        )
        self.job = job
        self.cause = cause


class CleanupWarning:
    """A temp artifact that could not be removed. Recorded on the job, never raised."""

    def __init__(self, path: Path, cause: BaseException):
        self.path = Path(path)
        self.cause = cause

    def __str__(self):
        return f"Could not remove temporary file: {self.path} ({self.cause})"

    def __repr__(self):
        return f"CleanupWarning(path={str(self.path)!r}, cause={self.cause!r})"


def describe_failure(exc: BaseException, limit: int = 300) -> str:
    """Build the caller-facing message for a failed job.

    Appends a flattened, truncated excerpt of the failing tool's stderr when
    one was captured.
    """
    message = str(exc) or exc.__class__.__name__
    stderr = getattr(exc, "stderr", "") or ""
    if not stderr.strip():
        return message
    flat = " ".join(stderr.split())
    excerpt = flat[:limit]
    suffix = "..." if len(flat) > limit else ""
    return f"{message} (Details: {excerpt}{suffix})"
