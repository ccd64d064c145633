"""Tests for lib.models — job state machine and naming."""

from pathlib import Path

import pytest

from lib.errors import CommandFailure
from lib.models import (
    InvalidTransition,
    JobState,
    LoopRequest,
    MediaKind,
    OutputAsset,
    ProcessingJob,
    ResolutionMode,
    sanitize_stem,
)


@pytest.fixture
def job(sample_request, tmp_path):
    return ProcessingJob.create(sample_request, tmp_path / "out")


class TestLoopRequest:
    def test_from_paths(self, media_files):
        video, audio = media_files
        req = LoopRequest.from_paths(video, audio, 3, full_hd=True)
        assert req.video.kind is MediaKind.VIDEO
        assert req.audio.kind is MediaKind.AUDIO
        assert req.resolution_mode is ResolutionMode.FULL_HD

    def test_default_mode_is_preserve(self, sample_request):
        assert sample_request.resolution_mode is ResolutionMode.PRESERVE


class TestProcessingJob:
    def test_output_name_derived_from_video(self, job):
        assert job.output_name.startswith("looped_clip_")
        assert job.output_name.endswith(f"{job.id}.mp4")

    def test_ids_unique(self, sample_request, tmp_path):
        ids = {ProcessingJob.create(sample_request, tmp_path).id for _ in range(50)}
        assert len(ids) == 50

    def test_record_probe_sets_target_once(self, job):
        job.record_probe(2.5)
        assert job.target_duration == pytest.approx(10.0)
        with pytest.raises(RuntimeError):
            job.record_probe(3.0)
        assert job.target_duration == pytest.approx(10.0)

    def test_happy_path_transitions(self, job, tmp_path):
        for state in (JobState.PROBING, JobState.MANIFEST_BUILT, JobState.LOOPING, JobState.COMPOSING):
            job.transition(state)
        job.complete(OutputAsset(path=tmp_path / "x.mp4", file_name="x.mp4"))
        assert job.state is JobState.COMPLETED
        assert job.is_terminal

    def test_cannot_skip_stages(self, job):
        with pytest.raises(InvalidTransition):
            job.transition(JobState.LOOPING)

    def test_terminal_states_are_final(self, job):
        job.fail(CommandFailure("ffmpeg", 1, "bad"))
        with pytest.raises(InvalidTransition):
            job.transition(JobState.PROBING)
        with pytest.raises(InvalidTransition):
            job.fail(CommandFailure("ffmpeg", 1, "again"))

    def test_fail_enriches_message(self, job):
        job.fail(CommandFailure("ffmpeg", 1, "moov atom not found"))
        assert job.state is JobState.FAILED
        assert "moov atom not found" in job.error_message

    def test_summary(self, job):
        job.record_probe(1.5)
        data = job.summary()
        assert data["state"] == "created"
        assert data["target_duration"] == pytest.approx(6.0)
        assert data["output_path"] is None


def test_sanitize_stem():
    assert sanitize_stem("my clip (final)!.mp4") == "my_clip__final__"
    assert sanitize_stem(str(Path("/a/b/ok-name_1.mp4"))) == "ok-name_1"
