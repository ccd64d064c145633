"""Looper API — FastAPI entry point."""

import logging
import shutil
from pathlib import Path

# Load .env BEFORE importing routes (they read LOOPER_* dirs at import time)
from dotenv import load_dotenv
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

from fastapi import FastAPI
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles

from server.routes import process

logger = logging.getLogger(__name__)

# Project root is the parent of server/
PROJECT_ROOT = Path(__file__).resolve().parent.parent
FRONTEND_DIR = PROJECT_ROOT / "frontend"
CONFIG = process.CONFIG

app = FastAPI(title="Looper API", version="0.1.0")

# API routes
app.include_router(process.router)

# Finished outputs are served straight from the output directory
app.mount("/processed", StaticFiles(directory=str(CONFIG.output_dir)), name="processed")


@app.get("/api/health")
async def health() -> dict:
    """Report whether the media tools are on the PATH."""
    return {
        "status": "ok",
        "ffmpeg": shutil.which(CONFIG.ffmpeg_bin) is not None,
        "ffprobe": shutil.which(CONFIG.ffprobe_bin) is not None,
    }


@app.get("/")
async def serve_index():
    """Serve the upload form."""
    return FileResponse(FRONTEND_DIR / "index.html")


logger.info("Uploads temporarily in: %s", CONFIG.upload_dir)
logger.info("Processed videos in: %s (served via /processed)", CONFIG.output_dir)
