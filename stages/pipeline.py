"""Pipeline orchestrator — probe, manifest, loop and compose one job, then clean up.

A LoopPipeline is shared by every job in the process. Jobs are independent
asyncio tasks; the only shared state is the read-only config and a semaphore
that bounds how many jobs run encoder stages at once.
"""

import asyncio
import logging
import time
from typing import Optional

from lib.config import LooperConfig
from lib.errors import InputNotFound, InvalidLoopCount, JobCancelled, JobFailed, LooperError
from lib.models import JobState, LoopRequest, OutputAsset, ProcessingJob
from lib.runner import CommandRunner
from stages.compose import ComposeStage
from stages.janitor import Janitor
from stages.loop import LoopStage, intermediate_path_for
from stages.manifest import ManifestBuilder
from stages.probe import DurationProbe

logger = logging.getLogger("looper")


class LoopPipeline:
    def __init__(self, config: LooperConfig, runner: Optional[CommandRunner] = None):
        self.config = config
        self.runner = runner or CommandRunner(timeout=config.command_timeout_seconds)
        self.probe_stage = DurationProbe(config, self.runner)
        self.manifest_stage = ManifestBuilder(config, self.runner)
        self.loop_stage = LoopStage(config, self.runner)
        self.compose_stage = ComposeStage(config, self.runner)
        self._gate = asyncio.Semaphore(config.concurrency_limit())

    def validate(self, request: LoopRequest):
        """Check the request before anything touches the filesystem or a subprocess."""
        loop_count = request.loop_count
        if (
            isinstance(loop_count, bool)
            or not isinstance(loop_count, int)
            or not self.config.min_loops <= loop_count <= self.config.max_loops
        ):
            raise InvalidLoopCount(loop_count, self.config.min_loops, self.config.max_loops)
        for asset in (request.video, request.audio):
            if not asset.path.is_file():
                raise InputNotFound(asset.path.resolve(), asset.kind.value)

    async def run(self, request: LoopRequest, output_name: Optional[str] = None) -> ProcessingJob:
        """Run one job to a terminal state and return it.

        Failures are recorded on the job (state FAILED, error, error_message)
        rather than raised. Cancellation still cleans up, marks the job
        failed, and re-raises CancelledError.
        """
        job = ProcessingJob.create(request, self.config.output_dir, output_name)
        logger.info(
            f"Job {job.id}: {request.video.path.name} x{request.loop_count} "
            f"+ {request.audio.path.name} ({request.resolution_mode.value}) -> {job.output_name}"
        )
        start = time.time()

        try:
            await self._run_scoped(job)
        except (LooperError, OSError) as e:
            job.fail(e, self.config.stderr_excerpt_chars)
            logger.error(f"Job {job.id} failed after {time.time() - start:.1f}s: {job.error_message}")
        except asyncio.CancelledError:
            job.fail(JobCancelled(job.id), self.config.stderr_excerpt_chars)
            logger.warning(f"Job {job.id} cancelled after {time.time() - start:.1f}s")
            raise
        except Exception as e:
            job.fail(e, self.config.stderr_excerpt_chars)
            logger.exception(f"Job {job.id} failed with an unexpected error: {e!r}")
        else:
            job.complete(OutputAsset(path=job.output_path, file_name=job.output_name))
            logger.info(f"Job {job.id} completed in {time.time() - start:.1f}s: {job.output_path}")

        return job

    async def process(self, request: LoopRequest, output_name: Optional[str] = None) -> OutputAsset:
        """Like run(), but return the OutputAsset or raise JobFailed."""
        job = await self.run(request, output_name)
        if job.state is JobState.FAILED:
            raise JobFailed(job)
        return job.output

    async def _run_scoped(self, job: ProcessingJob):
        with Janitor(job) as janitor:
            try:
                self.validate(job.request)
                async with self._gate:
                    await self._execute(job, janitor)
            except BaseException:
                # A compose that died mid-write leaves a partial output behind
                if job.state is JobState.COMPOSING:
                    janitor.register(job.output_path)
                raise

    async def _execute(self, job: ProcessingJob, janitor: Janitor):
        job.transition(JobState.PROBING)
        await self.probe_stage.run(job)

        manifest = await self.manifest_stage.run(job)
        janitor.register(manifest)
        job.transition(JobState.MANIFEST_BUILT)

        job.intermediate_path = janitor.register(intermediate_path_for(self.config.temp_dir, job.id))
        job.transition(JobState.LOOPING)
        await self.loop_stage.run(job)

        job.transition(JobState.COMPOSING)
        await self.compose_stage.run(job)
