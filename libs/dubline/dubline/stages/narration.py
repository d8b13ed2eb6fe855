"""Narration synthesis stage."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import cast

from dubline.exceptions import ProbeError, ProviderError, SynthesisError
from dubline.models.artifact import ArtifactRole
from dubline.pipeline.context import RenderContext
from dubline.providers.media.base import MediaEngine
from dubline.providers.tts.base import TTSProvider
from dubline.stages.base import Stage
from dubline.storage.artifact_store import RequestArtifacts

logger = logging.getLogger(__name__)


class NarrationStage(Stage):
    """Synthesize the script, persist it, and measure the real audio duration.

    Providers do not speak at a fixed rate, so the duration always comes from
    probing the written file.
    """

    name = "narration"

    def __init__(self, provider: TTSProvider, engine: MediaEngine) -> None:
        self.provider = provider
        self.engine = engine

    def validate_input(self, context: RenderContext) -> bool:
        return bool(str(context.get("text") or "").strip())

    async def execute(self, context: RenderContext, artifacts: RequestArtifacts) -> RenderContext:
        text = str(context.get("text") or "")
        rid = artifacts.request_id

        try:
            audio = await self.provider.synthesize(text)
        except ProviderError as exc:
            raise SynthesisError(str(exc), stage=self.name, request_id=rid) from exc
        except Exception as exc:
            # SDK and transport errors the provider did not map itself.
            raise SynthesisError(
                f"{self.provider.name}: {type(exc).__name__}: {exc}", stage=self.name, request_id=rid
            ) from exc
        if not audio:
            raise SynthesisError(
                f"{self.provider.name} returned an empty payload", stage=self.name, request_id=rid
            )

        audio_path = artifacts.create(ArtifactRole.NARRATION_AUDIO)
        await asyncio.to_thread(Path(audio_path).write_bytes, audio)

        try:
            probe = await self.engine.probe(str(audio_path))
        except ProbeError as exc:
            raise ProbeError(exc.message, stage=self.name, request_id=rid) from exc
        if probe.duration <= 0:
            raise SynthesisError("narration audio has no measurable duration", stage=self.name, request_id=rid)

        logger.info(
            "narration ready (request_id=%s, provider=%s, bytes=%d, duration=%.3fs)",
            rid,
            self.provider.name,
            len(audio),
            probe.duration,
        )
        context = cast(RenderContext, dict(context))
        context["narration_path"] = str(audio_path)
        context["narration_duration"] = float(probe.duration)
        return context
