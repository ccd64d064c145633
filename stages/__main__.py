"""CLI entry point: python -m stages --video clip.mp4 --audio track.mp3 --loops 225"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

from lib.config import load_config
from lib.models import JobState, LoopRequest
from stages.pipeline import LoopPipeline


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Looper — loop a short clip under a long audio track"
    )
    parser.add_argument("--video", required=True, help="Path to the short video clip")
    parser.add_argument("--audio", required=True, help="Path to the audio track")
    parser.add_argument(
        "--loops",
        type=int,
        required=True,
        help="Number of times to repeat the clip",
    )
    parser.add_argument(
        "--full-hd",
        action="store_true",
        help="Re-encode video to 1920x1080 instead of stream-copying it",
    )
    parser.add_argument(
        "--output-name",
        default=None,
        help="Output file name (auto-generated if omitted)",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.toml (default: config/config.toml)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )
    args = parser.parse_args(argv)

    # Configure logging
    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    config = load_config(args.config)
    request = LoopRequest.from_paths(args.video, args.audio, args.loops, full_hd=args.full_hd)
    job = asyncio.run(LoopPipeline(config).run(request, output_name=args.output_name))

    print(f"\nJob {job.id}: {job.state.value}")
    if job.state is JobState.COMPLETED:
        print(f"Output: {job.output.path}")
        print(f"Duration: {job.target_duration:.3f}s ({args.loops} loops of {job.probed_duration}s)")
        return 0

    print(f"Error: {job.error_message}")
    return 1


if __name__ == "__main__":
    sys.exit(main())
