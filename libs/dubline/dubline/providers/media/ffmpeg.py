"""FFmpeg/ffprobe-backed media engine."""

from __future__ import annotations

import json
import logging
import subprocess
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from dubline.exceptions import EngineError, ProbeError
from dubline.models.media import MediaProbe
from dubline.providers.media.base import MediaEngine
from dubline.utils.ffmpeg import resolve_ffmpeg_bin, resolve_ffprobe_bin
from dubline.utils.subprocess import run_subprocess

logger = logging.getLogger(__name__)


def _to_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _to_int(value: Any) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def parse_probe_payload(payload: dict[str, Any]) -> MediaProbe:
    """Build a MediaProbe from `ffprobe -show_format -show_streams -of json` output."""
    fmt = dict(payload.get("format") or {})
    streams = list(payload.get("streams") or [])

    video = next((s for s in streams if s.get("codec_type") == "video"), None)
    audio = next((s for s in streams if s.get("codec_type") == "audio"), None)

    duration = _to_float(fmt.get("duration"))
    if duration <= 0:
        # Some containers only report per-stream durations.
        duration = max((_to_float(s.get("duration")) for s in streams), default=0.0)

    return MediaProbe(
        duration=duration,
        format_name=str(fmt.get("format_name") or ""),
        video_codec=str(video.get("codec_name") or "unknown") if video else None,
        audio_codec=str(audio.get("codec_name") or "unknown") if audio else None,
        width=_to_int(video.get("width")) if video else None,
        height=_to_int(video.get("height")) if video else None,
    )


class FFmpegProvider(MediaEngine):
    def __init__(
        self,
        ffmpeg_bin: str = "ffmpeg",
        ffprobe_bin: str = "ffprobe",
        *,
        timeout_s: float | None = None,
    ) -> None:
        self.ffmpeg_bin = resolve_ffmpeg_bin(ffmpeg_bin)
        self.ffprobe_bin = resolve_ffprobe_bin(ffprobe_bin, ffmpeg_bin=self.ffmpeg_bin)
        self.timeout_s = timeout_s

    async def _run(self, args: list[str]) -> bytes:
        try:
            result = await run_subprocess(args, timeout_s=self.timeout_s)
        except FileNotFoundError as exc:
            raise EngineError(
                args,
                None,
                f"binary not found: {args[0]}. Install ffmpeg and ensure it is in PATH "
                "(or install `imageio-ffmpeg`, or set MEDIA_FFMPEG_BIN).",
            ) from exc
        except subprocess.TimeoutExpired as exc:
            raise EngineError(args, None, f"timed out after {self.timeout_s}s") from exc
        if not result.ok:
            raise EngineError(args, result.returncode, result.stderr_tail())
        logger.debug("%s exited 0 in %.2fs", Path(args[0]).name, result.elapsed_s)
        return result.stdout

    async def probe(self, path: str) -> MediaProbe:
        path = str(path)
        if not Path(path).is_file():
            raise ProbeError(f"file not found: {path}")
        args = [
            self.ffprobe_bin,
            "-v",
            "error",
            "-show_format",
            "-show_streams",
            "-of",
            "json",
            path,
        ]
        try:
            raw = await self._run(args)
            payload = json.loads(raw.decode("utf-8", errors="ignore") or "{}")
        except EngineError as exc:
            raise ProbeError(f"ffprobe failed for {Path(path).name}: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise ProbeError(f"unreadable ffprobe output for {Path(path).name}") from exc
        if not isinstance(payload, dict) or not payload.get("format"):
            raise ProbeError(f"no container metadata for {Path(path).name}")
        probe = parse_probe_payload(payload)
        logger.debug("probe %s -> %s", path, probe)
        return probe

    async def transcode(self, args: Sequence[str], output_path: str) -> str:
        output_path = str(output_path)
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        cmd = [self.ffmpeg_bin, "-hide_banner", "-y", *[str(a) for a in args], output_path]
        logger.info("ffmpeg started: %s", " ".join(cmd))
        await self._run(cmd)
        return output_path
