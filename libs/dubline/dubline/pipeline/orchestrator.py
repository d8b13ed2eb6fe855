"""Request pipeline orchestrator (stage-by-stage execution)."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator
from pathlib import Path
from uuid import uuid4

import anyio

from dubline.config import Settings
from dubline.error_codes import ErrorCode
from dubline.exceptions import (
    ConfigurationError,
    DublineError,
    PipelineStageError,
    ProviderError,
    StreamError,
    ValidationError,
)
from dubline.models.request import RenderRequest, RenderResult
from dubline.pipeline.context import RenderContext
from dubline.providers.media.base import MediaEngine
from dubline.providers.registry import get_media_engine, get_tts_provider
from dubline.providers.tts.base import TTSProvider
from dubline.stages.base import Stage
from dubline.stages.compose import ComposeStage
from dubline.stages.cue_timeline import CueTimelineStage
from dubline.stages.narration import NarrationStage
from dubline.stages.normalize import NormalizeStage
from dubline.storage.artifact_store import ArtifactStore, RequestArtifacts
from dubline.utils.text import sanitize_text

logger = logging.getLogger(__name__)

STREAM_CHUNK_SIZE = 64 * 1024


def infer_error_code(exc: BaseException) -> str:
    code = getattr(exc, "error_code", None)
    if code is not None:
        return str(code.value if isinstance(code, ErrorCode) else code)
    if isinstance(exc, ConfigurationError):
        return ErrorCode.INVALID_MEDIA.value
    if isinstance(exc, ProviderError):
        return ErrorCode.PROVIDER_FAILED.value
    return ErrorCode.UNKNOWN.value


class PipelineOrchestrator:
    """Runs one render request through normalize -> narration -> cues -> compose.

    Owns every artifact the request creates: on failure all of them are released
    before the error propagates; on success only the composite output survives,
    and it is released by `RenderResult.aclose()` once delivered.
    """

    def __init__(
        self,
        settings: Settings,
        store: ArtifactStore,
        *,
        engine: MediaEngine | None = None,
        tts: TTSProvider | None = None,
    ) -> None:
        self.settings = settings
        self.store = store
        self.engine = engine or get_media_engine(settings.media.model_dump())
        self.tts = tts or get_tts_provider(settings.narration_config())

        self.cue_timeline = CueTimelineStage(settings)
        self.stages: list[Stage] = [
            NormalizeStage(settings, self.engine),
            NarrationStage(self.tts, self.engine),
            self.cue_timeline,
            ComposeStage(settings, self.engine),
        ]

    def open_request(self, request_id: str | None = None) -> RequestArtifacts:
        return self.store.open_request(request_id)

    async def close(self) -> None:
        await self.tts.close()
        await self.engine.close()

    @staticmethod
    async def _cleanup(artifacts: RequestArtifacts) -> None:
        try:
            await asyncio.shield(artifacts.release_all())
        except Exception:
            logger.exception("cleanup failed (request_id=%s)", artifacts.request_id)

    def _initial_context(self, artifacts: RequestArtifacts, request: RenderRequest) -> RenderContext:
        video_path = Path(str(request.video_path or ""))
        if not str(request.video_path or "").strip() or not video_path.is_file():
            raise ValidationError("Missing video input")
        if request.text is None:
            raise ValidationError("Missing text input")
        return {
            "request_id": artifacts.request_id,
            "original_filename": str(request.original_filename or video_path.name),
            "mime_type": request.mime_type,
            "raw_video_path": str(video_path),
            "text": sanitize_text(request.text),
        }

    async def run(self, artifacts: RequestArtifacts, request: RenderRequest) -> RenderResult:
        rid = artifacts.request_id
        started = time.monotonic()
        stage_name = "validate"
        try:
            ctx = self._initial_context(artifacts, request)

            # Plan cue lines before any expensive stage so empty text never reaches
            # synthesis or composition.
            stage_name = self.cue_timeline.name
            ctx["cue_chunks"] = self.cue_timeline.plan(ctx.get("text", ""))

            for stage in self.stages:
                stage_name = stage.name
                if not stage.validate_input(ctx):
                    raise PipelineStageError("input validation failed", stage=stage.name, request_id=rid)
                t0 = time.monotonic()
                logger.info("stage start (request_id=%s, stage=%s)", rid, stage.name)
                ctx = await stage.execute(ctx, artifacts)
                logger.info(
                    "stage done (request_id=%s, stage=%s, duration_ms=%d)",
                    rid,
                    stage.name,
                    int((time.monotonic() - t0) * 1000),
                )

            output_path = Path(str(ctx.get("output_path") or ""))
            for artifact in artifacts.artifacts:
                if artifact.path != output_path:
                    await artifacts.release(artifact.path)
            size_bytes = output_path.stat().st_size

        except asyncio.CancelledError:
            logger.warning("request cancelled (request_id=%s, stage=%s)", rid, stage_name)
            await self._cleanup(artifacts)
            raise
        except DublineError:
            logger.exception("stage failed (request_id=%s, stage=%s)", rid, stage_name)
            await self._cleanup(artifacts)
            raise
        except Exception as exc:
            logger.exception("stage failed (request_id=%s, stage=%s)", rid, stage_name)
            await self._cleanup(artifacts)
            raise PipelineStageError(str(exc), stage=stage_name, request_id=rid) from exc

        logger.info(
            "render done (request_id=%s, output=%s, bytes=%d, duration_ms=%d)",
            rid,
            output_path.name,
            size_bytes,
            int((time.monotonic() - started) * 1000),
        )
        return RenderResult(
            request_id=rid,
            output_path=output_path,
            download_name=f"final_{uuid4().hex[:8]}.mp4",
            size_bytes=size_bytes,
            narration_duration=float(ctx.get("narration_duration") or 0.0),
            cues=list(ctx.get("cues") or []),
            artifacts=artifacts,
        )


async def stream_result(
    result: RenderResult, *, chunk_size: int = STREAM_CHUNK_SIZE
) -> AsyncIterator[bytes]:
    """Yield the output file from disk, then release the request's artifacts.

    Cleanup runs on every exit path: normal completion, read errors, and the
    consumer closing the iterator early (client disconnect).
    """
    sent = 0
    try:
        try:
            async with await anyio.open_file(result.output_path, "rb") as f:
                while True:
                    chunk = await f.read(chunk_size)
                    if not chunk:
                        break
                    sent += len(chunk)
                    yield chunk
        except OSError as exc:
            logger.exception(
                "stream failed (request_id=%s, sent=%d/%d)", result.request_id, sent, result.size_bytes
            )
            raise StreamError(f"failed to read {result.output_path.name}: {exc}") from exc
        logger.info("stream complete (request_id=%s, bytes=%d)", result.request_id, sent)
    finally:
        try:
            await asyncio.shield(result.aclose())
        except Exception:
            logger.exception("cleanup after stream failed (request_id=%s)", result.request_id)
