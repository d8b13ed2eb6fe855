from __future__ import annotations

import asyncio
import os
import time

import pytest

from dubline.models.artifact import ArtifactRole
from dubline.storage.sweeper import RetentionSweeper


def _age(path, seconds: float) -> None:
    ts = time.time() - seconds
    os.utime(path, (ts, ts))


@pytest.mark.asyncio
async def test_sweep_removes_only_stale_files(store) -> None:
    old_upload = store.create(ArtifactRole.RAW_UPLOAD, request_id="r").path
    old_output = store.create(ArtifactRole.COMPOSITE_OUTPUT, request_id="r").path
    fresh = store.create(ArtifactRole.NARRATION_AUDIO, request_id="r").path
    for p in (old_upload, old_output, fresh):
        p.write_bytes(b"x")
    _age(old_upload, 900)
    _age(old_output, 601)

    sweeper = RetentionSweeper(store, retention_s=600, interval_s=60)
    assert await sweeper.sweep_once() == 2

    assert not old_upload.exists()
    assert not old_output.exists()
    assert fresh.exists()


@pytest.mark.asyncio
async def test_sweep_skips_directories(store) -> None:
    nested = store.role_dirs[ArtifactRole.SUBTITLE_FILE] / "nested"
    nested.mkdir()
    _age(nested, 3600)

    assert await RetentionSweeper(store, retention_s=1).sweep_once() == 0
    assert nested.exists()


@pytest.mark.asyncio
async def test_sweep_swallows_errors(store, monkeypatch) -> None:
    def _boom():
        raise PermissionError("denied")

    monkeypatch.setattr(store, "directories", _boom)
    assert await RetentionSweeper(store).sweep_once() == 0


@pytest.mark.asyncio
async def test_sweep_tolerates_unremovable_files(store, monkeypatch) -> None:
    path = store.create(ArtifactRole.SUBTITLE_FILE, request_id="r").path
    path.write_bytes(b"x")
    _age(path, 3600)

    original_unlink = type(path).unlink

    def _unlink(self, *args, **kwargs):
        if self == path:
            raise PermissionError("read-only")
        return original_unlink(self, *args, **kwargs)

    monkeypatch.setattr(type(path), "unlink", _unlink)
    assert await RetentionSweeper(store, retention_s=10).sweep_once() == 0
    assert path.exists()


@pytest.mark.asyncio
async def test_background_loop_start_stop(store) -> None:
    path = store.create(ArtifactRole.RAW_UPLOAD, request_id="r").path
    path.write_bytes(b"x")
    _age(path, 3600)

    sweeper = RetentionSweeper(store, retention_s=60, interval_s=0.01)
    sweeper.start()
    assert sweeper.running
    for _ in range(200):
        if not path.exists():
            break
        await asyncio.sleep(0.01)
    await sweeper.stop()

    assert not path.exists()
    assert not sweeper.running
    await sweeper.stop()
