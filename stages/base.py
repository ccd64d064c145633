"""BaseStage ABC — foundation for the loop pipeline stages."""

import logging
import time
from abc import ABC, abstractmethod
from typing import Optional

from lib.config import LooperConfig
from lib.models import ProcessingJob
from lib.runner import CommandRunner

logger = logging.getLogger("looper")


class BaseStage(ABC):
    """Abstract base class for pipeline stages.

    Each stage reads its inputs from the job, does one unit of work
    (usually one subprocess call) and records its output back on the job.
    """

    name: str = "base"

    def __init__(self, config: LooperConfig, runner: Optional[CommandRunner] = None):
        self.config = config
        self.runner = runner or CommandRunner(timeout=config.command_timeout_seconds)
        self.logger = logging.getLogger(f"looper.{self.name}")

    @abstractmethod
    async def execute(self, job: ProcessingJob):
        """Run the stage's core logic against the job."""
        ...

    async def run(self, job: ProcessingJob):
        """Execute with timing and logging."""
        self.logger.info(f"[{self.name}] Starting for job {job.id}...")
        start = time.time()
        try:
            result = await self.execute(job)
        except Exception as e:
            elapsed = time.time() - start
            self.logger.error(f"[{self.name}] Failed after {elapsed:.1f}s: {e}")
            raise
        elapsed = time.time() - start
        self.logger.info(f"[{self.name}] Completed in {elapsed:.1f}s")
        return result
