"""Probe stage — read the source clip's container duration with ffprobe.

Inputs:
    - request.video.path
Outputs:
    - job.probed_duration, job.target_duration (= probed * loop_count)
Dependencies:
    - ffprobe
"""

import math
from pathlib import Path

from lib.errors import CommandFailure, ProbeFailure
from lib.models import ProcessingJob
from stages.base import BaseStage


def duration_args(path: Path) -> list:
    """ffprobe arguments that print only the container duration, bare."""
    return [
        "-v", "error",
        "-show_entries", "format=duration",
        "-of", "default=noprint_wrappers=1:nokey=1",
        str(path),
    ]


def parse_duration(stdout: str) -> float:
    """Parse ffprobe's bare duration output. Raises ValueError if unusable."""
    text = stdout.strip()
    if not text:
        raise ValueError("empty output")
    duration = float(text)
    if not math.isfinite(duration) or duration <= 0:
        raise ValueError(f"non-positive duration {duration}")
    return duration


class DurationProbe(BaseStage):
    name = "probe"

    async def probe(self, path: Path) -> float:
        """Return the media file's duration in seconds.

        A missing ffprobe binary surfaces as LaunchFailure; everything else
        that goes wrong is a ProbeFailure carrying the captured output.
        """
        self.logger.info(f"Probing duration for video: {path}")
        try:
            result = await self.runner.run(self.config.ffprobe_bin, duration_args(path))
        except CommandFailure as e:
            raise ProbeFailure(
                f'Failed to get video duration for "{path}". {e.message}',
                e.stderr, e.stdout,
            ) from e

        try:
            return parse_duration(result.stdout)
        except ValueError as e:
            raise ProbeFailure(
                f"Could not parse a valid, positive video duration from ffprobe output "
                f'for "{path}". stdout: "{result.stdout.strip()}"',
                result.stderr, result.stdout,
            ) from e

    async def execute(self, job: ProcessingJob) -> float:
        duration = await self.probe(job.request.video.path.resolve())
        job.record_probe(duration)
        self.logger.info(
            f"Input video duration: {duration} seconds. "
            f"Target total duration: {job.target_duration:.3f} seconds."
        )
        return duration
