"""Job data model — requests, assets and the per-job state machine."""

import re
import uuid
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import List, Optional, Set

from pydantic import BaseModel, ConfigDict, Field

from lib.errors import CleanupWarning, describe_failure


class MediaKind(str, Enum):
    VIDEO = "video"
    AUDIO = "audio"


class ResolutionMode(str, Enum):
    PRESERVE = "preserve"
    FULL_HD = "full_hd"


class JobState(str, Enum):
    CREATED = "created"
    PROBING = "probing"
    MANIFEST_BUILT = "manifest_built"
    LOOPING = "looping"
    COMPOSING = "composing"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_STATES = {JobState.COMPLETED, JobState.FAILED}

# state -> states reachable from it
TRANSITIONS = {
    JobState.CREATED: {JobState.PROBING, JobState.FAILED},
    JobState.PROBING: {JobState.MANIFEST_BUILT, JobState.FAILED},
    JobState.MANIFEST_BUILT: {JobState.LOOPING, JobState.FAILED},
    JobState.LOOPING: {JobState.COMPOSING, JobState.FAILED},
    JobState.COMPOSING: {JobState.COMPLETED, JobState.FAILED},
    JobState.COMPLETED: set(),
    JobState.FAILED: set(),
}


class InvalidTransition(RuntimeError):
    pass


class MediaAsset(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: Path
    kind: MediaKind


class LoopRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    video: MediaAsset
    audio: MediaAsset
    loop_count: int
    resolution_mode: ResolutionMode = ResolutionMode.PRESERVE

    @classmethod
    def from_paths(cls, video_path, audio_path, loop_count: int, full_hd: bool = False) -> "LoopRequest":
        return cls(
            video=MediaAsset(path=Path(video_path), kind=MediaKind.VIDEO),
            audio=MediaAsset(path=Path(audio_path), kind=MediaKind.AUDIO),
            loop_count=loop_count,
            resolution_mode=ResolutionMode.FULL_HD if full_hd else ResolutionMode.PRESERVE,
        )


class OutputAsset(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: Path
    file_name: str


def new_job_id() -> str:
    """Timestamp plus random suffix, e.g. 20261018_120000_1a2b3c4d."""
    now = datetime.now(timezone.utc)
    return f"{now.strftime('%Y%m%d_%H%M%S')}_{uuid.uuid4().hex[:8]}"


def sanitize_stem(name: str) -> str:
    """Reduce a file name stem to [A-Za-z0-9_.-] so it is safe in output names."""
    stem = Path(name).stem
    return re.sub(r"[^a-zA-Z0-9_.-]", "_", stem) or "video"


class ProcessingJob(BaseModel):
    """One run of the loop pipeline.

    The orchestrator drives `state` through TRANSITIONS; `target_duration`
    is fixed once by record_probe() and later stages only read it.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: str
    request: LoopRequest
    output_path: Path
    state: JobState = JobState.CREATED
    probed_duration: Optional[float] = None
    target_duration: Optional[float] = None
    manifest_path: Optional[Path] = None
    intermediate_path: Optional[Path] = None
    temp_artifacts: Set[Path] = Field(default_factory=set)
    output: Optional[OutputAsset] = None
    error: Optional[Exception] = None
    error_message: Optional[str] = None
    cleanup_warnings: List[CleanupWarning] = Field(default_factory=list)

    @classmethod
    def create(cls, request: LoopRequest, output_dir: Path, output_name: Optional[str] = None) -> "ProcessingJob":
        job_id = new_job_id()
        if not output_name:
            output_name = f"looped_{sanitize_stem(request.video.path.name)}_{job_id}.mp4"
        return cls(id=job_id, request=request, output_path=Path(output_dir) / output_name)

    @property
    def output_name(self) -> str:
        return self.output_path.name

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    def transition(self, new_state: JobState):
        if new_state not in TRANSITIONS[self.state]:
            raise InvalidTransition(f"Job {self.id}: cannot go from {self.state.value} to {new_state.value}")
        self.state = new_state

    def record_probe(self, duration: float):
        if self.probed_duration is not None:
            raise RuntimeError(f"Job {self.id}: duration already probed")
        self.probed_duration = duration
        self.target_duration = duration * self.request.loop_count

    def complete(self, output: OutputAsset):
        self.transition(JobState.COMPLETED)
        self.output = output

    def fail(self, error: Exception, excerpt_chars: int = 300):
        self.transition(JobState.FAILED)
        self.error = error
        self.error_message = describe_failure(error, excerpt_chars)

    def summary(self) -> dict:
        return {
            "job_id": self.id,
            "state": self.state.value,
            "loop_count": self.request.loop_count,
            "resolution_mode": self.request.resolution_mode.value,
            "probed_duration": self.probed_duration,
            "target_duration": self.target_duration,
            "output_path": str(self.output.path) if self.output else None,
            "error": self.error_message,
            "cleanup_warnings": [str(w) for w in self.cleanup_warnings],
        }
