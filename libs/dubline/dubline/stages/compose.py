"""Final composition: mixed narration + burned-in subtitles."""

from __future__ import annotations

import logging
from typing import cast

from dubline.config import Settings
from dubline.exceptions import CompositionError, EngineError
from dubline.models.artifact import ArtifactRole
from dubline.pipeline.context import RenderContext
from dubline.providers.media.base import MediaEngine
from dubline.stages.base import Stage
from dubline.storage.artifact_store import RequestArtifacts
from dubline.utils.ffmpeg import escape_filter_path

logger = logging.getLogger(__name__)

ORIGINAL_AUDIO_WEIGHT = 0.3
NARRATION_WEIGHT = 1.0


def mix_filter_graph(subtitle_path: str, *, original_audio: str = "0:a") -> str:
    """Weighted sum of both audio tracks plus subtitle burn-in on the video.

    amix keeps the longer input (duration=longest); -shortest on the output then
    cuts to whichever of video and mixed audio ends first.
    """
    return ";".join(
        [
            f"[{original_audio}]volume={ORIGINAL_AUDIO_WEIGHT}[a0]",
            f"[1:a]volume={NARRATION_WEIGHT}[a1]",
            "[a0][a1]amix=inputs=2:duration=longest:normalize=0[aout]",
            f"[0:v]subtitles={escape_filter_path(subtitle_path)}[vout]",
        ]
    )


class ComposeStage(Stage):
    name = "compose"

    def __init__(self, settings: Settings, engine: MediaEngine) -> None:
        self.engine = engine
        self.preset = str(settings.media.preset)
        self.crf = int(settings.media.crf)
        self.audio_bitrate = str(settings.media.audio_bitrate)

    def validate_input(self, context: RenderContext) -> bool:
        return all(context.get(k) for k in ("video_path", "narration_path", "subtitle_path"))

    def compose_args(
        self,
        video_path: str,
        narration_path: str,
        subtitle_path: str,
        *,
        has_audio: bool = True,
    ) -> list[str]:
        inputs = ["-i", video_path, "-i", narration_path]
        original_audio = "0:a"
        if not has_audio:
            # Silent stand-in keeps the mix graph (and its weights) unchanged.
            inputs += ["-f", "lavfi", "-i", "anullsrc=channel_layout=stereo:sample_rate=44100"]
            original_audio = "2:a"
        return [
            *inputs,
            "-filter_complex",
            mix_filter_graph(subtitle_path, original_audio=original_audio),
            "-map",
            "[vout]",
            "-map",
            "[aout]",
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
            "-shortest",
            "-movflags",
            "+faststart",
        ]

    async def execute(self, context: RenderContext, artifacts: RequestArtifacts) -> RenderContext:
        rid = artifacts.request_id
        probe = context.get("video_probe")
        has_audio = True if probe is None else probe.has_audio

        out_path = artifacts.create(ArtifactRole.COMPOSITE_OUTPUT)
        args = self.compose_args(
            str(context.get("video_path") or ""),
            str(context.get("narration_path") or ""),
            str(context.get("subtitle_path") or ""),
            has_audio=has_audio,
        )
        try:
            await self.engine.transcode(args, str(out_path))
        except EngineError as exc:
            await artifacts.release(out_path)
            raise CompositionError(str(exc), stage=self.name, request_id=rid) from exc

        if not out_path.is_file() or out_path.stat().st_size == 0:
            await artifacts.release(out_path)
            raise CompositionError("engine produced no output", stage=self.name, request_id=rid)

        logger.info("composed %s (request_id=%s)", out_path.name, rid)
        context = cast(RenderContext, dict(context))
        context["output_path"] = str(out_path)
        return context
