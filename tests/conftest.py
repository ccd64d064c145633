"""Shared test fixtures for Looper tests."""

import asyncio
from pathlib import Path

import pytest

from lib.config import LooperConfig
from lib.models import LoopRequest
from lib.runner import CommandResult


class FakeRunner:
    """Stands in for CommandRunner: records argument vectors, fakes ffmpeg outputs.

    ffmpeg calls create their output file (the last argument) the way a real
    encode would, so cleanup can be checked on disk. `errors` maps a stage
    ("probe", "loop", "compose") to an exception raised after the output is
    written. A stage listed in `hang` blocks until cancelled.
    """

    def __init__(self, probe_stdout="2.5\n", errors=None, hang=(), delay=0.0):
        self.probe_stdout = probe_stdout
        self.errors = errors or {}
        self.hang = set(hang)
        self.delay = delay
        self.calls = []
        self.manifests = []
        self.active = 0
        self.max_active = 0

    @staticmethod
    def stage_of(tool, args):
        if "ffprobe" in tool:
            return "probe"
        if "concat" in args:
            return "loop"
        return "compose"

    def args_for(self, stage):
        return [args for tool, args in self.calls if self.stage_of(tool, args) == stage]

    async def run(self, tool, args):
        args = [str(a) for a in args]
        stage = self.stage_of(tool, args)
        self.calls.append((tool, args))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if stage == "loop":
                manifest = Path(args[args.index("-i") + 1])
                self.manifests.append(manifest.read_text(encoding="utf-8", errors="surrogateescape"))
            if stage != "probe":
                Path(args[-1]).write_bytes(b"fake")
            if stage in self.hang:
                await asyncio.Event().wait()
            if stage in self.errors:
                raise self.errors[stage]
            if stage == "probe":
                return CommandResult(self.probe_stdout, "")
            return CommandResult("", "")
        finally:
            self.active -= 1


@pytest.fixture
def sample_config(tmp_path):
    """Return a LooperConfig rooted in a temp directory."""
    return LooperConfig(
        upload_dir=tmp_path / "uploads",
        output_dir=tmp_path / "processed",
        temp_dir=tmp_path / "tmp",
        max_concurrent_jobs=2,
    )


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def make_runner():
    """Factory for FakeRunner with custom behaviour."""
    return FakeRunner


@pytest.fixture
def media_files(tmp_path):
    """Create placeholder clip and audio files."""
    src = tmp_path / "src"
    src.mkdir()
    video = src / "clip.mp4"
    audio = src / "track.mp3"
    video.write_bytes(b"\x00" * 64)
    audio.write_bytes(b"\x00" * 64)
    return video, audio


@pytest.fixture
def sample_request(media_files):
    video, audio = media_files
    return LoopRequest.from_paths(video, audio, 4)


def leftover_files(directory: Path) -> list:
    """Files remaining under a directory (empty list if it doesn't exist)."""
    if not directory.exists():
        return []
    return sorted(p for p in directory.rglob("*") if p.is_file())


@pytest.fixture
def leftovers():
    return leftover_files


@pytest.fixture
def command_failure():
    """Factory for a stage failure carrying ffmpeg-style stderr."""
    from lib.errors import CommandFailure

    def _make(tool="ffmpeg", code=1, stderr="Invalid data found when processing input\n"):
        return CommandFailure(tool, code, stderr, "")

    return _make

