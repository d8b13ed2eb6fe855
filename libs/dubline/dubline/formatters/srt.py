"""SRT cue serialization."""

from __future__ import annotations

import re

from dubline.models.cue import Cue

_TIMESTAMP_RE = re.compile(r"^(\d{2,}):(\d{2}):(\d{2}),(\d{3})$")


def format_srt_timestamp(seconds: float) -> str:
    if seconds < 0:
        seconds = 0.0
    total_ms = int(round(seconds * 1000))
    ms = total_ms % 1000
    total_s = total_ms // 1000
    s = total_s % 60
    total_m = total_s // 60
    m = total_m % 60
    h = total_m // 60
    return f"{h:02d}:{m:02d}:{s:02d},{ms:03d}"


def parse_srt_timestamp(value: str) -> float:
    match = _TIMESTAMP_RE.match(value.strip())
    if match is None:
        raise ValueError(f"invalid SRT timestamp: {value!r}")
    h, m, s, ms = (int(g) for g in match.groups())
    return (((h * 60 + m) * 60 + s) * 1000 + ms) / 1000


def format_srt(cues: list[Cue]) -> str:
    blocks = [
        f"{cue.index}\n"
        f"{format_srt_timestamp(cue.start)} --> {format_srt_timestamp(cue.end)}\n"
        f"{cue.text}\n"
        for cue in cues
    ]
    return "\n".join(blocks)


def parse_srt(text: str) -> list[Cue]:
    cues: list[Cue] = []
    normalized = str(text or "").replace("\r\n", "\n").strip()
    if not normalized:
        return cues
    for block in re.split(r"\n\s*\n", normalized):
        lines = block.split("\n")
        if len(lines) < 3:
            raise ValueError(f"incomplete SRT block: {block!r}")
        try:
            index = int(lines[0].strip())
        except ValueError as exc:
            raise ValueError(f"invalid SRT index: {lines[0]!r}") from exc
        start_raw, sep, end_raw = lines[1].partition("-->")
        if not sep:
            raise ValueError(f"invalid SRT timing line: {lines[1]!r}")
        cues.append(
            Cue(
                index=index,
                start=parse_srt_timestamp(start_raw),
                end=parse_srt_timestamp(end_raw),
                text="\n".join(lines[2:]),
            )
        )
    return cues
