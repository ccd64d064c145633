"""Async subprocess runner for ffmpeg/ffprobe.

Arguments are always passed as a discrete vector to create_subprocess_exec,
never joined into a shell string.
"""

import asyncio
import logging
from typing import List, NamedTuple, Optional, Sequence

from lib.errors import CommandFailure, CommandTimeout, LaunchFailure

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 4096
_STDERR_TAIL_LINES = 20


class CommandResult(NamedTuple):
    stdout: str
    stderr: str


def format_command(tool: str, args: Sequence[str]) -> str:
    """Render a command for log output, quoting arguments with spaces."""
    shown = [f'"{a}"' if " " in a else a for a in args]
    return " ".join([tool, *shown])


def stderr_tail(stderr: str, lines: int = _STDERR_TAIL_LINES) -> str:
    return "\n".join(stderr.strip().splitlines()[-lines:])


async def _drain(stream, chunks: List[bytes]):
    # ffmpeg progress lines end in \r, so read fixed-size chunks instead of lines
    while True:
        chunk = await stream.read(_CHUNK_SIZE)
        if not chunk:
            break
        chunks.append(chunk)


class CommandRunner:
    """Run one external tool invocation per call. No retries."""

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = timeout or None

    async def run(self, tool: str, args: Sequence[str]) -> CommandResult:
        args = [str(a) for a in args]
        logger.info("Executing: %s", format_command(tool, args))

        try:
            proc = await asyncio.create_subprocess_exec(
                tool, *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            logger.error('Failed to start subprocess for "%s": %s', tool, e)
            raise LaunchFailure(tool, e) from e

        out_chunks: List[bytes] = []
        err_chunks: List[bytes] = []

        async def _collect():
            await asyncio.gather(
                _drain(proc.stdout, out_chunks),
                _drain(proc.stderr, err_chunks),
            )
            return await proc.wait()

        try:
            if self.timeout:
                returncode = await asyncio.wait_for(_collect(), timeout=self.timeout)
            else:
                returncode = await _collect()
        except asyncio.TimeoutError:
            await _terminate(proc)
            stdout, stderr = _decode(out_chunks), _decode(err_chunks)
            logger.error('Command "%s" timed out after %ss', tool, self.timeout)
            raise CommandTimeout(tool, self.timeout, stderr, stdout)
        except asyncio.CancelledError:
            await _terminate(proc)
            logger.warning('Command "%s" cancelled; child process killed', tool)
            raise

        stdout, stderr = _decode(out_chunks), _decode(err_chunks)
        if returncode != 0:
            logger.error('Command failed with code %s: %s', returncode, format_command(tool, args))
            if stderr.strip():
                logger.error("%s stderr (tail):\n%s", tool, stderr_tail(stderr))
            raise CommandFailure(tool, returncode, stderr, stdout)

        logger.debug("%s finished (stdout %d bytes, stderr %d bytes)", tool, len(stdout), len(stderr))
        return CommandResult(stdout, stderr)


def _decode(chunks: List[bytes]) -> str:
    return b"".join(chunks).decode("utf-8", errors="replace")


async def _terminate(proc):
    """Kill a still-running child and reap it."""
    if proc.returncode is None:
        try:
            proc.kill()
        except ProcessLookupError:
            pass
    await proc.wait()
