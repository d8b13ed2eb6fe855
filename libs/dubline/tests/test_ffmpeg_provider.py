from __future__ import annotations

import json
import subprocess
import sys
from pathlib import Path

import pytest

from dubline.exceptions import EngineError, ProbeError
from dubline.providers.media import ffmpeg as ffmpeg_module
from dubline.providers.media.ffmpeg import FFmpegProvider, parse_probe_payload
from dubline.utils.ffmpeg import escape_filter_path, resolve_ffprobe_bin
from dubline.utils.subprocess import RunResult, run_subprocess

PAYLOAD = {
    "format": {"format_name": "mov,mp4,m4a,3gp,3g2,mj2", "duration": "12.480000"},
    "streams": [
        {"codec_type": "audio", "codec_name": "aac", "duration": "12.40"},
        {"codec_type": "video", "codec_name": "h264", "width": 1920, "height": 1080},
        {"codec_type": "video", "codec_name": "mjpeg", "width": 320, "height": 180},
    ],
}


def _provider(tmp_path: Path, **kwargs) -> FFmpegProvider:
    ffmpeg = tmp_path / "ffmpeg"
    ffprobe = tmp_path / "ffprobe"
    ffmpeg.write_text("")
    ffprobe.write_text("")
    return FFmpegProvider(str(ffmpeg), str(ffprobe), **kwargs)


def test_parse_probe_payload_picks_first_streams() -> None:
    probe = parse_probe_payload(PAYLOAD)
    assert probe.duration == pytest.approx(12.48)
    assert probe.video_codec == "h264"
    assert probe.audio_codec == "aac"
    assert (probe.width, probe.height) == (1920, 1080)
    assert "mp4" in probe.containers
    assert probe.has_video and probe.has_audio


def test_parse_probe_payload_falls_back_to_stream_duration() -> None:
    probe = parse_probe_payload(
        {
            "format": {"format_name": "mp3"},
            "streams": [{"codec_type": "audio", "codec_name": "mp3", "duration": "3.25"}],
        }
    )
    assert probe.duration == pytest.approx(3.25)
    assert not probe.has_video
    assert probe.width is None


@pytest.mark.asyncio
async def test_probe_missing_file(tmp_path) -> None:
    with pytest.raises(ProbeError):
        await _provider(tmp_path).probe(str(tmp_path / "missing.mp4"))


@pytest.mark.asyncio
async def test_probe_parses_ffprobe_json(tmp_path, monkeypatch) -> None:
    seen: list[list[str]] = []

    async def _fake_run(args, **kwargs):
        seen.append(list(args))
        return RunResult(0, json.dumps(PAYLOAD).encode(), b"")

    monkeypatch.setattr(ffmpeg_module, "run_subprocess", _fake_run)
    media = tmp_path / "in.mp4"
    media.write_bytes(b"x")

    probe = await _provider(tmp_path).probe(str(media))

    assert probe.video_codec == "h264"
    assert seen[0][1:] == ["-v", "error", "-show_format", "-show_streams", "-of", "json", str(media)]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "result",
    [
        RunResult(1, b"", b"Invalid data found when processing input"),
        RunResult(0, b"not json", b""),
        RunResult(0, b"{}", b""),
    ],
)
async def test_probe_failures_become_probe_errors(tmp_path, monkeypatch, result) -> None:
    async def _fake_run(args, **kwargs):
        return result

    monkeypatch.setattr(ffmpeg_module, "run_subprocess", _fake_run)
    media = tmp_path / "broken.mp4"
    media.write_bytes(b"x")

    with pytest.raises(ProbeError):
        await _provider(tmp_path).probe(str(media))


@pytest.mark.asyncio
async def test_transcode_builds_command_and_reports_failure(tmp_path, monkeypatch) -> None:
    seen: list[list[str]] = []

    async def _fake_run(args, **kwargs):
        seen.append(list(args))
        return RunResult(1, b"", b"Conversion failed!")

    monkeypatch.setattr(ffmpeg_module, "run_subprocess", _fake_run)
    provider = _provider(tmp_path)
    out = tmp_path / "out" / "x.mp4"

    with pytest.raises(EngineError) as excinfo:
        await provider.transcode(["-i", "in.mp4"], str(out))

    assert seen[0] == [provider.ffmpeg_bin, "-hide_banner", "-y", "-i", "in.mp4", str(out)]
    assert excinfo.value.returncode == 1
    assert "Conversion failed!" in str(excinfo.value)
    assert out.parent.is_dir()


@pytest.mark.asyncio
async def test_missing_binary_and_timeout(tmp_path, monkeypatch) -> None:
    async def _missing(args, **kwargs):
        raise FileNotFoundError(args[0])

    async def _slow(args, **kwargs):
        raise subprocess.TimeoutExpired(args, kwargs.get("timeout_s"))

    provider = _provider(tmp_path, timeout_s=5)

    monkeypatch.setattr(ffmpeg_module, "run_subprocess", _missing)
    with pytest.raises(EngineError, match="binary not found"):
        await provider.transcode([], str(tmp_path / "a.mp4"))

    monkeypatch.setattr(ffmpeg_module, "run_subprocess", _slow)
    with pytest.raises(EngineError, match="timed out"):
        await provider.transcode([], str(tmp_path / "a.mp4"))


@pytest.mark.asyncio
async def test_run_subprocess_captures_output() -> None:
    result = await run_subprocess([sys.executable, "-c", "import sys; print('ok'); sys.exit(3)"])
    assert result.returncode == 3
    assert result.stdout.strip() == b"ok"


def test_ffprobe_found_next_to_ffmpeg(tmp_path, monkeypatch) -> None:
    monkeypatch.setattr("dubline.utils.ffmpeg.shutil.which", lambda name: None)
    ffmpeg = tmp_path / "ffmpeg-linux64"
    ffprobe = tmp_path / "ffprobe-linux64"
    ffmpeg.write_text("")
    ffprobe.write_text("")

    assert resolve_ffprobe_bin("ffprobe", ffmpeg_bin=str(ffmpeg)) == str(ffprobe)


@pytest.mark.parametrize(
    ("path", "expected"),
    [
        ("/data/subtitles/a.srt", "'/data/subtitles/a.srt'"),
        ("C:/data/a.srt", "'C\\:/data/a.srt'"),
    ],
)
def test_escape_filter_path(path, expected) -> None:
    assert escape_filter_path(path) == expected


def test_run_result_helpers() -> None:
    result = RunResult(1, b"", b"x" * 10 + b"tail\n")
    assert not result.ok
    assert result.stderr_tail(4) == "tail"
