"""Run the external transcoding engine for one job."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import re
import signal
import sys
import time
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass, field
from pathlib import Path

from ..exceptions import TranscodeError
from .ffmpeg_progress import FFmpegProgressParser
from .transcode_models import EventCallback, TranscodeEvent, TranscodeResult

logger = logging.getLogger(__name__)

_LINE_SPLIT = re.compile(r"[\r\n]")

VIDEO_FILTER = "reverse"
AUDIO_FILTER = "areverse"
OUTPUT_ARGS: tuple[str, ...] = (
    "-c:v", "libx264",
    "-preset", "veryfast",
    "-pix_fmt", "yuv420p",
    "-c:a", "aac",
    "-movflags", "+faststart",
)


class TranscodeRunner(ABC):
    """Base interface for reverse transcoders."""

    @abstractmethod
    async def run(
        self,
        input_path: Path,
        output_path: Path,
        *,
        on_event: EventCallback | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> TranscodeResult:
        """Write the reversed copy of ``input_path`` to ``output_path``.

        Raises :class:`~src.reverser.exceptions.TranscodeError` on any engine
        failure; the output must then be treated as not ready.
        """


def emit(callback: EventCallback | None, event: TranscodeEvent) -> None:
    """Deliver an event; listener failures never affect the job."""
    if callback is None:
        return
    try:
        callback(event)
    except Exception as exc:
        logger.warning("transcode.event_callback_failed", extra={"event": event.kind.value, "error": str(exc)})


@dataclass(slots=True)
class FFmpegTranscodeRunner(TranscodeRunner):
    """Reverse video and audio with one ffmpeg subprocess per job."""

    ffmpeg_path: str = "ffmpeg"
    timeout_seconds: float | None = None
    output_args: tuple[str, ...] = OUTPUT_ARGS
    stderr_tail_lines: int = 30
    log: logging.Logger = field(default_factory=lambda: logger)

    def build_command(self, input_path: Path, output_path: Path) -> list[str]:
        return [
            self.ffmpeg_path,
            "-hide_banner",
            "-nostdin",
            "-y",
            "-i", str(input_path),
            "-vf", VIDEO_FILTER,
            "-af", AUDIO_FILTER,
            *self.output_args,
            str(output_path),
        ]

    async def run(
        self,
        input_path: Path,
        output_path: Path,
        *,
        on_event: EventCallback | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> TranscodeResult:
        command = self.build_command(input_path, output_path)
        started_at = time.monotonic()
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            self._fail(on_event, f"failed to start ffmpeg: {exc}")

        self.log.info("transcode.started", extra={"command": " ".join(command)})
        emit(on_event, TranscodeEvent.started(command))

        tail: deque[str] = deque(maxlen=self.stderr_tail_lines)
        parser = FFmpegProgressParser(lambda percent: self._on_progress(on_event, percent))
        reader = asyncio.create_task(self._pump_stderr(process.stderr, parser, tail))
        waiter = asyncio.create_task(process.wait())
        cancel_waiter = asyncio.create_task(cancel_event.wait()) if cancel_event is not None else None

        watched = {waiter} if cancel_waiter is None else {waiter, cancel_waiter}
        try:
            done, _ = await asyncio.wait(
                watched,
                timeout=self.timeout_seconds,
                return_when=asyncio.FIRST_COMPLETED,
            )
        except asyncio.CancelledError:
            await self._terminate(process)
            reader.cancel()
            raise
        finally:
            if cancel_waiter is not None:
                cancel_waiter.cancel()

        interrupted: str | None = None
        if waiter not in done:
            interrupted = "cancelled" if cancel_waiter in done else f"timed out after {self.timeout_seconds}s"
            self.log.warning("transcode.interrupted", extra={"reason": interrupted, "input": str(input_path)})
            await self._terminate(process)

        try:
            await asyncio.wait_for(reader, timeout=5)
        except asyncio.TimeoutError:
            reader.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await reader

        return_code = process.returncode
        if interrupted is not None:
            self._fail(on_event, f"transcode {interrupted}", return_code=return_code)
        if return_code != 0:
            detail = tail[-1] if tail else "no diagnostic output"
            self._fail(on_event, f"ffmpeg exited with code {return_code}: {detail}", return_code=return_code)
        if not output_path.is_file() or output_path.stat().st_size == 0:
            self._fail(on_event, "ffmpeg produced no output", return_code=return_code)

        elapsed = time.monotonic() - started_at
        self.log.info(
            "transcode.completed",
            extra={"output": str(output_path), "elapsed_seconds": round(elapsed, 3)},
        )
        emit(on_event, TranscodeEvent.completed())
        return TranscodeResult(output_path=output_path, command=command, elapsed_seconds=elapsed)

    def _on_progress(self, on_event: EventCallback | None, percent: float) -> None:
        self.log.debug("transcode.progress", extra={"percent": round(percent, 1)})
        emit(on_event, TranscodeEvent.progress(percent))

    def _fail(self, on_event: EventCallback | None, reason: str, *, return_code: int | None = None) -> None:
        self.log.error("transcode.failed", extra={"reason": reason, "return_code": return_code})
        emit(on_event, TranscodeEvent.failed(reason))
        raise TranscodeError(reason, return_code=return_code)

    @staticmethod
    async def _pump_stderr(
        stream: asyncio.StreamReader | None,
        parser: FFmpegProgressParser,
        tail: deque[str],
    ) -> None:
        if stream is None:
            return
        buffer = ""
        while True:
            chunk = await stream.read(1024)
            if not chunk:
                break
            buffer += chunk.decode("utf-8", errors="ignore")
            *lines, buffer = _LINE_SPLIT.split(buffer)
            for line in lines:
                if line.strip():
                    tail.append(line.strip())
                    parser(line)
        if buffer.strip():
            tail.append(buffer.strip())
            parser(buffer)

    async def _terminate(self, process: asyncio.subprocess.Process) -> None:
        """Stop ffmpeg: SIGINT first so it can finalise, then terminate, then kill."""
        if process.returncode is not None:
            return
        steps = []
        if sys.platform != "win32":
            steps.append(lambda: process.send_signal(signal.SIGINT))
        steps.extend([process.terminate, process.kill])
        for step in steps:
            try:
                step()
            except ProcessLookupError:
                return
            try:
                await asyncio.wait_for(process.wait(), timeout=5)
                return
            except asyncio.TimeoutError:
                continue
        self.log.error("transcode.terminate_failed", extra={"pid": process.pid})
