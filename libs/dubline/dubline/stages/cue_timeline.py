"""Cue timeline: word chunks timed against the measured narration duration."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import cast

from dubline.config import Settings
from dubline.exceptions import EmptyTextError
from dubline.formatters.srt import format_srt
from dubline.models.artifact import ArtifactRole
from dubline.models.cue import Cue
from dubline.pipeline.context import RenderContext
from dubline.stages.base import Stage
from dubline.storage.artifact_store import RequestArtifacts
from dubline.utils.text import split_words

logger = logging.getLogger(__name__)


def plan_chunks(text: str, chunk_size: int = 6) -> list[str]:
    """Group whitespace-separated words into cue lines of `chunk_size` words."""
    if chunk_size < 1:
        raise ValueError("chunk_size must be >= 1")
    words = split_words(text)
    if not words:
        raise EmptyTextError("no words to time")
    return [" ".join(words[i : i + chunk_size]) for i in range(0, len(words), chunk_size)]


def build_cues(
    chunks: list[str],
    duration: float,
    *,
    gap_s: float = 0.15,
    min_duration_s: float = 0.5,
) -> list[Cue]:
    """Spread `chunks` evenly across `duration` seconds.

    Every cue lasts max(duration / n - gap, min_duration). With the floor in play the
    timeline can run past `duration`; it is not truncated. Times sit on a millisecond
    grid so they survive SRT serialization unchanged.
    """
    if not chunks:
        raise EmptyTextError("no cue lines")
    count = len(chunks)
    line_s = max(float(duration) / count - float(gap_s), float(min_duration_s))
    line_ms = int(round(line_s * 1000))
    gap_ms = int(round(float(gap_s) * 1000))

    cues: list[Cue] = []
    start_ms = 0
    for i, chunk in enumerate(chunks, start=1):
        end_ms = start_ms + line_ms
        cues.append(Cue(index=i, start=start_ms / 1000, end=end_ms / 1000, text=chunk))
        start_ms = end_ms + gap_ms
    return cues


def timeline_end(cues: list[Cue]) -> float:
    return cues[-1].end if cues else 0.0


class CueTimelineStage(Stage):
    name = "cue_timeline"

    def __init__(self, settings: Settings) -> None:
        self.chunk_size = int(settings.cues.chunk_size)
        self.gap_s = float(settings.cues.gap_s)
        self.min_duration_s = float(settings.cues.min_duration_s)

    def plan(self, text: str) -> list[str]:
        return plan_chunks(text, self.chunk_size)

    def validate_input(self, context: RenderContext) -> bool:
        return bool(context.get("text")) and float(context.get("narration_duration") or 0) > 0

    async def execute(self, context: RenderContext, artifacts: RequestArtifacts) -> RenderContext:
        chunks = list(context.get("cue_chunks") or []) or self.plan(str(context.get("text") or ""))
        duration = float(context.get("narration_duration") or 0.0)

        cues = build_cues(
            chunks,
            duration,
            gap_s=self.gap_s,
            min_duration_s=self.min_duration_s,
        )
        end = timeline_end(cues)
        if end > duration:
            logger.info(
                "cue timeline overruns narration (request_id=%s, cues_end=%.3f, duration=%.3f)",
                artifacts.request_id,
                end,
                duration,
            )

        srt_path = artifacts.create(ArtifactRole.SUBTITLE_FILE)
        await asyncio.to_thread(Path(srt_path).write_text, format_srt(cues), encoding="utf-8")
        logger.info("wrote %d cues to %s", len(cues), srt_path)

        context = cast(RenderContext, dict(context))
        context["cue_chunks"] = chunks
        context["cues"] = cues
        context["subtitle_path"] = str(srt_path)
        return context
