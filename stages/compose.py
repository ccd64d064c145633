"""Compose stage — mux the looped video with the audio track at the exact target length.

Inputs:
    - job.intermediate_path, request.audio.path, job.target_duration
Outputs:
    - final output file in the output dir
Dependencies:
    - ffmpeg (mux, optional libx264 re-encode, aac)
Config:
    - encoding.* (target size, codec, preset, crf, audio codec/bitrate)
"""

from pathlib import Path

from lib.encoding import format_duration, get_audio_encoder_args, get_video_encoder_args
from lib.models import ProcessingJob, ResolutionMode
from stages.base import BaseStage


class ComposeStage(BaseStage):
    name = "compose"

    def build_args(
        self,
        intermediate_path: Path,
        audio_path: Path,
        target_duration: float,
        mode: ResolutionMode,
        output_path: Path,
    ) -> list:
        return [
            "-y",
            "-i", str(intermediate_path),
            # Loop the audio input forever; -t decides where it stops
            "-stream_loop", "-1",
            "-i", str(audio_path),
            "-map", "0:v:0",
            "-map", "1:a:0",
            *get_video_encoder_args(self.config, mode),
            *get_audio_encoder_args(self.config),
            "-t", format_duration(target_duration),
            str(output_path),
        ]

    async def compose(
        self,
        intermediate_path: Path,
        audio_path: Path,
        target_duration: float,
        mode: ResolutionMode,
        output_path: Path,
    ) -> Path:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        self.logger.info(
            f"Combining looped video with audio ({ResolutionMode(mode).value}, "
            f"{format_duration(target_duration)}s)..."
        )
        args = self.build_args(intermediate_path, audio_path, target_duration, mode, output_path)
        await self.runner.run(self.config.ffmpeg_bin, args)
        return output_path

    async def execute(self, job: ProcessingJob) -> Path:
        return await self.compose(
            job.intermediate_path,
            job.request.audio.path.resolve(),
            job.target_duration,
            job.request.resolution_mode,
            job.output_path,
        )
