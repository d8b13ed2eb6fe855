from __future__ import annotations

import sys
from collections.abc import Sequence
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from dubline.config import ArtifactConfig, Settings
from dubline.exceptions import EngineError, ProbeError
from dubline.models.media import MediaProbe
from dubline.pipeline.orchestrator import PipelineOrchestrator
from dubline.providers.media.base import MediaEngine
from dubline.providers.tts.base import TTSProvider
from dubline.storage import get_artifact_store

_API_ROOT = Path(__file__).resolve().parents[1]
if str(_API_ROOT) not in sys.path:
    sys.path.insert(0, str(_API_ROOT))

OUTPUT_BYTES = b"\x00\x00\x00\x18ftypmp42" + bytes(range(256)) * 64


class StubEngine(MediaEngine):
    """Pretends every upload is a canonical MP4 and writes a fixed output file."""

    def __init__(self, *, fail_compose: bool = False) -> None:
        self.fail_compose = fail_compose
        self.output = OUTPUT_BYTES
        self.transcodes: list[list[str]] = []

    async def probe(self, path: str) -> MediaProbe:
        if not Path(path).is_file():
            raise ProbeError(f"file not found: {path}")
        if str(path).endswith(".mp3"):
            return MediaProbe(duration=4.0, format_name="mp3", audio_codec="mp3")
        return MediaProbe(
            duration=6.0,
            format_name="mov,mp4,m4a,3gp,3g2,mj2",
            video_codec="h264",
            audio_codec="aac",
            width=640,
            height=360,
        )

    async def transcode(self, args: Sequence[str], output_path: str) -> str:
        self.transcodes.append([str(a) for a in args])
        if self.fail_compose:
            raise EngineError(["ffmpeg"], 1, "Error initializing filter 'subtitles'")
        Path(output_path).write_bytes(self.output)
        return output_path


class StubTTS(TTSProvider):
    name = "stub"

    def __init__(self) -> None:
        self.calls: list[str] = []

    async def synthesize(self, text: str) -> bytes:
        self.calls.append(text)
        return b"ID3stub"


@pytest.fixture()
def settings(tmp_path) -> Settings:
    return Settings(
        log_dir=str(tmp_path / "logs"),
        upload_max_bytes=1024 * 1024,
        artifacts=ArtifactConfig(base_dir=str(tmp_path / "data")),
    )


@pytest.fixture()
def engine() -> StubEngine:
    return StubEngine()


@pytest.fixture()
def tts() -> StubTTS:
    return StubTTS()


@pytest.fixture()
def stored_files(settings: Settings):
    store = get_artifact_store(settings)

    def _list() -> list[Path]:
        return sorted(p for d in store.directories() for p in d.iterdir() if p.is_file())

    return _list


@pytest.fixture()
def app(settings: Settings, engine: StubEngine, tts: StubTTS) -> FastAPI:
    from routes.health import router as health_router
    from routes.render import router as render_router

    test_app = FastAPI()
    test_app.state.settings = settings
    test_app.state.orchestrator = PipelineOrchestrator(
        settings, get_artifact_store(settings), engine=engine, tts=tts
    )
    test_app.include_router(render_router)
    test_app.include_router(health_router)
    return test_app


@pytest.fixture()
def client(app: FastAPI) -> TestClient:
    return TestClient(app)
