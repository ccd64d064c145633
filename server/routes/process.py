"""Process endpoint — accept a clip and an audio track, run the loop pipeline."""

import logging
import random
import re
import time
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, File, Form, UploadFile
from fastapi.responses import JSONResponse

from lib.config import load_config
from lib.errors import InputNotFound, InvalidLoopCount
from lib.models import JobState, LoopRequest, new_job_id, sanitize_stem
from lib.paths import ensure_dirs
from stages.pipeline import LoopPipeline

logger = logging.getLogger(__name__)

router = APIRouter(tags=["process"])

CONFIG = load_config()
ensure_dirs(CONFIG.upload_dir, CONFIG.output_dir, CONFIG.temp_dir)
PIPELINE = LoopPipeline(CONFIG)

_UPLOAD_CHUNK = 1024 * 1024


class UploadRejected(Exception):
    """Upload failed validation; message is safe to show the client."""


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse({"success": False, "message": message}, status_code=status_code)


def _upload_name(original: str) -> str:
    unique = f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}"
    safe = re.sub(r"[^a-zA-Z0-9._-]", "_", Path(original or "upload").name)
    return f"{unique}-{safe}"


def _parse_loops(raw: Optional[str]) -> Optional[int]:
    """Return the loop count if it is an in-range integer, else None."""
    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError):
        return None
    if not CONFIG.min_loops <= value <= CONFIG.max_loops:
        return None
    return value


async def _save_upload(upload: UploadFile, allowed_types: tuple, label: str) -> Path:
    """Stream an upload to UPLOAD_DIR, enforcing the MIME allow-list and size ceiling."""
    if upload.content_type not in allowed_types:
        raise UploadRejected(f"Only {', '.join(allowed_types)} {label} files are allowed!")

    dest = Path(CONFIG.upload_dir) / _upload_name(upload.filename)
    size = 0
    try:
        with open(dest, "wb") as f:
            while True:
                chunk = await upload.read(_UPLOAD_CHUNK)
                if not chunk:
                    break
                size += len(chunk)
                if size > CONFIG.max_file_size_bytes:
                    break
                f.write(chunk)
    except BaseException:
        _remove_uploads(dest)
        raise
    if size > CONFIG.max_file_size_bytes:
        dest.unlink()
        raise UploadRejected(f"File size too large. Maximum is {CONFIG.max_file_size_mb}MB.")
    return dest


def _remove_uploads(*paths: Optional[Path]):
    for p in paths:
        if p is None:
            continue
        try:
            if p.exists():
                p.unlink()
        except OSError as e:
            logger.warning("Could not delete uploaded file %s: %s", p, e)


# ---------------------------------------------------------------------------
# Process endpoint
# ---------------------------------------------------------------------------

@router.post("/process-video")
async def process_video(
    videoFile: Optional[UploadFile] = File(None),
    audioFile: Optional[UploadFile] = File(None),
    numLoops: Optional[str] = Form(None),
    fullHD: Optional[str] = Form("false"),
):
    """Loop the uploaded clip `numLoops` times under the uploaded audio."""
    logger.info("POST /process-video loops=%s fullHD=%s", numLoops, fullHD)
    if videoFile is None or audioFile is None:
        return _error(400, "Both video and audio files are required.")

    loop_count = _parse_loops(numLoops)
    if loop_count is None:
        return _error(
            400,
            f"Number of loops must be an integer between {CONFIG.min_loops} and {CONFIG.max_loops}.",
        )

    video_path = audio_path = None
    try:
        try:
            video_path = await _save_upload(videoFile, CONFIG.allowed_video_types, "video")
            audio_path = await _save_upload(audioFile, CONFIG.allowed_audio_types, "audio")
        except UploadRejected as e:
            return _error(400, str(e))

        request = LoopRequest.from_paths(
            video_path, audio_path, loop_count, full_hd=str(fullHD).lower() == "true",
        )
        output_name = f"looped_{sanitize_stem(videoFile.filename or 'video')}_{new_job_id()}.mp4"
        job = await PIPELINE.run(request, output_name=output_name)

        if job.state is JobState.COMPLETED:
            return {
                "success": True,
                "message": "Video processed successfully!",
                "downloadUrl": f"/processed/{job.output.file_name}",
                "outputFileName": job.output.file_name,
                "jobId": job.id,
            }

        status = 400 if isinstance(job.error, (InvalidLoopCount, InputNotFound)) else 500
        return _error(status, f"Video processing failed: {job.error_message}")
    finally:
        _remove_uploads(video_path, audio_path)

