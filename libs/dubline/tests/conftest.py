from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from dubline.config import ArtifactConfig, Settings
from dubline.models.artifact import ArtifactRole
from dubline.storage.artifact_store import ArtifactStore, RequestArtifacts


@pytest.fixture()
def settings(tmp_path) -> Settings:
    return Settings(
        log_dir=str(tmp_path / "logs"),
        artifacts=ArtifactConfig(base_dir=str(tmp_path / "data")),
    )


@pytest.fixture()
def store(settings: Settings) -> ArtifactStore:
    return ArtifactStore.from_settings(settings)


@pytest.fixture()
def list_artifacts(store: ArtifactStore) -> Callable[[], list[Path]]:
    def _list() -> list[Path]:
        return sorted(p for d in store.directories() for p in d.iterdir() if p.is_file())

    return _list


@pytest.fixture()
def raw_upload() -> Callable[..., Path]:
    def _make(artifacts: RequestArtifacts, *, extension: str = ".mp4") -> Path:
        path = artifacts.create(ArtifactRole.RAW_UPLOAD, extension)
        path.write_bytes(b"raw-video-bytes")
        return path

    return _make
