"""Input normalization: canonical MP4 (H.264/AAC, fast-start) within a width bound."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import cast

from dubline.config import Settings
from dubline.exceptions import EngineError, ProbeError, TranscodeError
from dubline.models.artifact import ArtifactRole
from dubline.models.media import MediaProbe
from dubline.pipeline.context import RenderContext
from dubline.providers.media.base import MediaEngine
from dubline.stages.base import Stage
from dubline.storage.artifact_store import RequestArtifacts

logger = logging.getLogger(__name__)

CANONICAL_MIME = "video/mp4"
CANONICAL_VIDEO_CODEC = "h264"
CANONICAL_AUDIO_CODEC = "aac"
# Clients (curl, some browsers) send these for any file; they say nothing about the format.
UNTYPED_MIMES = frozenset({"application/octet-stream", "binary/octet-stream"})


def is_canonical(
    probe: MediaProbe,
    *,
    max_width: int,
    mime_type: str | None = None,
    filename: str | None = None,
) -> bool:
    """True when the file can be used as-is without re-encoding."""
    declared = str(mime_type or "").split(";")[0].strip().lower()
    if declared in UNTYPED_MIMES:
        declared = ""
    if declared:
        if declared != CANONICAL_MIME:
            return False
    elif Path(str(filename or "")).suffix.lower() != ".mp4":
        return False
    if "mp4" not in probe.containers:
        return False
    if probe.video_codec != CANONICAL_VIDEO_CODEC:
        return False
    if probe.has_audio and probe.audio_codec != CANONICAL_AUDIO_CODEC:
        return False
    if probe.width is None or probe.width > int(max_width):
        return False
    return True


def scale_filter(max_width: int) -> str:
    # Never upscale; -2 keeps the aspect ratio with an even height.
    return f"scale='min({int(max_width)},trunc(iw/2)*2)':-2"


class NormalizeStage(Stage):
    name = "normalize"

    def __init__(self, settings: Settings, engine: MediaEngine) -> None:
        self.engine = engine
        self.max_width = int(settings.media.max_width)
        self.preset = str(settings.media.preset)
        self.crf = int(settings.media.crf)
        self.audio_bitrate = str(settings.media.audio_bitrate)

    def validate_input(self, context: RenderContext) -> bool:
        return bool(context.get("raw_video_path"))

    def transcode_args(self, input_path: str) -> list[str]:
        return [
            "-i",
            input_path,
            "-vf",
            scale_filter(self.max_width),
            "-c:v",
            "libx264",
            "-preset",
            self.preset,
            "-crf",
            str(self.crf),
            "-pix_fmt",
            "yuv420p",
            "-c:a",
            "aac",
            "-b:a",
            self.audio_bitrate,
            "-movflags",
            "+faststart",
        ]

    async def execute(self, context: RenderContext, artifacts: RequestArtifacts) -> RenderContext:
        raw_path = str(context.get("raw_video_path") or "")
        try:
            probe = await self.engine.probe(raw_path)
        except ProbeError as exc:
            raise ProbeError(exc.message, stage=self.name, request_id=artifacts.request_id) from exc
        if not probe.has_video:
            raise ProbeError("input has no video stream", stage=self.name, request_id=artifacts.request_id)

        context = cast(RenderContext, dict(context))
        if is_canonical(
            probe,
            max_width=self.max_width,
            mime_type=context.get("mime_type"),
            filename=context.get("original_filename"),
        ):
            logger.info(
                "normalize skipped, input already canonical (request_id=%s, codec=%s, width=%s)",
                artifacts.request_id,
                probe.video_codec,
                probe.width,
            )
            context["video_path"] = raw_path
            context["video_probe"] = probe
            return context

        out_path = artifacts.create(ArtifactRole.NORMALIZED_VIDEO)
        try:
            await self.engine.transcode(self.transcode_args(raw_path), str(out_path))
        except EngineError as exc:
            await artifacts.release(out_path)
            raise TranscodeError(str(exc), stage=self.name, request_id=artifacts.request_id) from exc

        if not out_path.is_file() or out_path.stat().st_size == 0:
            await artifacts.release(out_path)
            raise TranscodeError("engine produced no output", stage=self.name, request_id=artifacts.request_id)

        try:
            normalized_probe = await self.engine.probe(str(out_path))
        except ProbeError as exc:
            raise ProbeError(exc.message, stage=self.name, request_id=artifacts.request_id) from exc

        # The raw upload is fully consumed once a normalized copy exists.
        if raw_path in artifacts:
            await artifacts.release(raw_path)

        logger.info(
            "normalized %s -> %s (request_id=%s, width=%s)",
            Path(raw_path).name,
            out_path.name,
            artifacts.request_id,
            normalized_probe.width,
        )
        context["video_path"] = str(out_path)
        context["video_probe"] = normalized_probe
        return context
