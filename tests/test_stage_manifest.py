"""Tests for the manifest stage."""

import asyncio
import os
from pathlib import Path

import pytest

from lib.errors import ManifestWriteFailure
from lib.models import ProcessingJob
from stages.manifest import ManifestBuilder, concat_directive


class TestManifestBuilder:
    @pytest.mark.parametrize("loop_count", [1, 2, 4, 225, 1000])
    def test_line_count_matches_loop_count(self, sample_config, media_files, loop_count):
        video, _ = media_files
        path = ManifestBuilder(sample_config).build(video, loop_count)
        lines = path.read_text().splitlines()
        assert len(lines) == loop_count
        assert set(lines) == {f"file '{video.resolve().as_posix()}'"}

    def test_written_to_temp_dir(self, sample_config, media_files):
        video, _ = media_files
        path = ManifestBuilder(sample_config).build(video, 3)
        assert path.parent == sample_config.temp_dir
        assert path.suffix == ".txt"

    def test_relative_path_made_absolute(self, sample_config, media_files, monkeypatch):
        video, _ = media_files
        monkeypatch.chdir(video.parent)
        path = ManifestBuilder(sample_config).build(Path("clip.mp4"), 1)
        assert path.read_text() == f"file '{video.resolve().as_posix()}'\n"

    def test_names_are_unique(self, sample_config, media_files):
        video, _ = media_files
        builder = ManifestBuilder(sample_config)
        paths = {builder.build(video, 1) for _ in range(20)}
        assert len(paths) == 20

    def test_newline_in_path_rejected(self, sample_config, tmp_path):
        with pytest.raises(ManifestWriteFailure):
            ManifestBuilder(sample_config).build(tmp_path / "bad\nname.mp4", 2)

    def test_unwritable_temp_dir(self, tmp_path, sample_config, media_files):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        config = sample_config.model_copy(update={"temp_dir": blocker / "tmp"})
        with pytest.raises(ManifestWriteFailure):
            ManifestBuilder(config).build(media_files[0], 2)

    def test_execute_sets_manifest_on_job(self, sample_config, sample_request, tmp_path):
        job = ProcessingJob.create(sample_request, tmp_path)
        path = asyncio.run(ManifestBuilder(sample_config).execute(job))
        assert job.manifest_path == path
        assert path.name.startswith(f"concat_{job.id}_")
        assert len(path.read_text().splitlines()) == 4

    def test_undecodable_file_name_written_as_raw_bytes(self, sample_config, tmp_path):
        video = tmp_path / os.fsdecode(b"clip_\xe9.mp4")
        video.write_bytes(b"\x00" * 16)
        path = ManifestBuilder(sample_config).build(video, 3)
        assert path.read_bytes().count(b"clip_\xe9.mp4'\n") == 3

    def test_encoding_error_discards_partial_file(self, sample_config, media_files, monkeypatch):
        monkeypatch.setattr("stages.manifest.concat_directive", lambda p: "file '\ud800'\n")
        with pytest.raises(ManifestWriteFailure):
            ManifestBuilder(sample_config).build(media_files[0], 2)
        assert list(sample_config.temp_dir.iterdir()) == []


class TestConcatDirective:
    def test_backslashes_become_forward_slashes(self):
        assert concat_directive(Path("C:\\clips\\loop.mp4")) == "file 'C:/clips/loop.mp4'\n"

    def test_single_quotes_escaped(self):
        assert concat_directive(Path("/media/it's here.mp4")) == "file '/media/it'\\''s here.mp4'\n"
