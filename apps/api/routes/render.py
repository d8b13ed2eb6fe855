"""Render route: upload a video plus narration text, stream back the result."""

from __future__ import annotations

import logging
from pathlib import Path

from fastapi import APIRouter, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import JSONResponse, StreamingResponse
from starlette.background import BackgroundTask

from dubline.config import Settings
from dubline.error_codes import ErrorCode
from dubline.models.artifact import ArtifactRole
from dubline.models.request import RenderRequest
from dubline.pipeline.orchestrator import PipelineOrchestrator, infer_error_code, stream_result
from dubline.storage.artifact_store import RequestArtifacts, safe_extension

router = APIRouter(tags=["render"])
logger = logging.getLogger("dubline.api")


def _error(status_code: int, message: str, code: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, "code": code})


def _missing_input() -> JSONResponse:
    return _error(400, "Missing video or text input", ErrorCode.VALIDATION_FAILED.value)


def _sanitize_filename(filename: str | None) -> str:
    base = Path(str(filename or "").strip()).name.replace("\x00", "")
    return base[:255] or "upload.mp4"


async def _write_upload_to_path(
    upload: UploadFile,
    target_path: Path,
    *,
    max_bytes: int,
    chunk_size: int = 8 * 1024 * 1024,
) -> int:
    written = 0
    with target_path.open("wb") as f:
        while True:
            chunk = await upload.read(chunk_size)
            if not chunk:
                break
            written += len(chunk)
            if written > max_bytes:
                raise HTTPException(status_code=413, detail="file too large")
            f.write(chunk)
    return written


async def _receive_upload(
    settings: Settings, upload: UploadFile, artifacts: RequestArtifacts
) -> tuple[Path, int]:
    target = artifacts.create(ArtifactRole.RAW_UPLOAD, safe_extension(upload.filename, ".mp4"))
    try:
        size = await _write_upload_to_path(upload, target, max_bytes=int(settings.upload_max_bytes))
    except Exception:
        await artifacts.release_all()
        raise
    finally:
        await upload.close()
    return target, size


@router.post("/upload")
async def render_upload(
    request: Request,
    video: UploadFile | None = File(None),
    text: str | None = Form(None),
):
    settings: Settings | None = getattr(request.app.state, "settings", None)
    orchestrator: PipelineOrchestrator | None = getattr(request.app.state, "orchestrator", None)
    if settings is None or orchestrator is None:
        raise HTTPException(status_code=500, detail="pipeline not initialized")

    if video is None or not text:
        return _missing_input()

    artifacts = orchestrator.open_request()
    filename = _sanitize_filename(video.filename)
    mime_type = video.content_type
    raw_path, size_bytes = await _receive_upload(settings, video, artifacts)
    if size_bytes == 0:
        await artifacts.release_all()
        return _missing_input()
    logger.info(
        "upload received (request_id=%s, filename=%s, bytes=%d, mime=%s)",
        artifacts.request_id,
        filename,
        size_bytes,
        mime_type,
    )

    try:
        result = await orchestrator.run(
            artifacts,
            RenderRequest(
                video_path=raw_path,
                text=text,
                original_filename=filename,
                mime_type=mime_type,
            ),
        )
    except Exception as exc:
        # The orchestrator has already released every artifact of this request.
        logger.error("render failed (request_id=%s): %s", artifacts.request_id, exc)
        return _error(500, "Failed to create video", infer_error_code(exc))

    headers = {
        "Content-Disposition": f'attachment; filename="{result.download_name}"',
        "Content-Length": str(result.size_bytes),
    }
    return StreamingResponse(
        stream_result(result),
        media_type="video/mp4",
        headers=headers,
        background=BackgroundTask(result.aclose),
    )
