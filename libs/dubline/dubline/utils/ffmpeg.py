"""FFmpeg binary resolution helper.

Prefer system `ffmpeg`/`ffprobe`, fallback to `imageio-ffmpeg` bundled binary.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

logger = logging.getLogger(__name__)


def resolve_ffmpeg_bin(ffmpeg_bin: str = "ffmpeg") -> str:
    ffmpeg_bin = (ffmpeg_bin or "ffmpeg").strip()

    if Path(ffmpeg_bin).exists():
        return ffmpeg_bin

    found = shutil.which(ffmpeg_bin)
    if found:
        return found

    try:
        import imageio_ffmpeg

        return str(imageio_ffmpeg.get_ffmpeg_exe())
    except Exception as exc:
        logger.warning("failed to resolve bundled ffmpeg (%s); fallback to %r", exc, ffmpeg_bin)
        return ffmpeg_bin


def resolve_ffprobe_bin(ffprobe_bin: str = "ffprobe", *, ffmpeg_bin: str | None = None) -> str:
    """imageio-ffmpeg ships no ffprobe, so look next to the resolved ffmpeg first."""
    ffprobe_bin = (ffprobe_bin or "ffprobe").strip()

    if Path(ffprobe_bin).exists():
        return ffprobe_bin

    found = shutil.which(ffprobe_bin)
    if found:
        return found

    if ffmpeg_bin:
        sibling = Path(ffmpeg_bin).with_name(Path(ffmpeg_bin).name.replace("ffmpeg", "ffprobe"))
        if sibling != Path(ffmpeg_bin) and sibling.exists():
            return str(sibling)

    logger.warning("ffprobe not found; fallback to %r", ffprobe_bin)
    return ffprobe_bin


def escape_filter_path(path: str | Path) -> str:
    """Quote a file path for use as a filter option inside -filter_complex."""
    raw = Path(path).as_posix()
    # Inside single quotes the graph parser keeps backslashes; the option parser then
    # needs ':' escaped (Windows drive letters).
    return "'" + raw.replace(":", "\\:") + "'"
