"""Loop stage — concatenate the manifest's repeated entries into one video-only file.

Inputs:
    - job.manifest_path
Outputs:
    - looped_<job id>.mp4 in the temp dir (video stream copied, no audio)
Dependencies:
    - ffmpeg (concat demuxer, stream copy)
"""

from pathlib import Path

from lib.models import ProcessingJob
from stages.base import BaseStage


def loop_args(manifest_path: Path, intermediate_path: Path) -> list:
    return [
        "-y",
        "-f", "concat",
        "-safe", "0",
        "-i", str(manifest_path),
        "-an",
        "-c:v", "copy",
        str(intermediate_path),
    ]


def intermediate_path_for(temp_dir: Path, job_id: str) -> Path:
    return Path(temp_dir) / f"looped_{job_id}.mp4"


class LoopStage(BaseStage):
    name = "loop"

    async def loop(self, manifest_path: Path, intermediate_path: Path) -> Path:
        """Stream-copy the concatenated clip into `intermediate_path`.

        Copying keeps the pass lossless and keeps the intermediate's length
        at probed_duration * loop_count.
        """
        self.logger.info("Looping video (video stream only)...")
        await self.runner.run(self.config.ffmpeg_bin, loop_args(manifest_path, intermediate_path))
        return intermediate_path

    async def execute(self, job: ProcessingJob) -> Path:
        # intermediate_path is assigned (and registered for cleanup) by the orchestrator
        return await self.loop(job.manifest_path, job.intermediate_path)
