"""Local artifact store: per-role temp directories with request scoping."""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Mapping
from pathlib import Path
from uuid import uuid4

from dubline.config import Settings
from dubline.models.artifact import DEFAULT_EXTENSIONS, Artifact, ArtifactRole

logger = logging.getLogger(__name__)

_EXT_RE = re.compile(r"^\.[a-z0-9]{1,8}$")


def safe_extension(filename: str | None, default: str) -> str:
    """Extension taken from a client filename, or `default` when unusable."""
    suffix = Path(str(filename or "").replace("\x00", "")).suffix.lower()
    if _EXT_RE.match(suffix):
        return suffix
    return default


class ArtifactStore:
    """Hands out collision-free paths inside each role's directory.

    The store never writes files itself; stages write to the paths it returns.
    """

    def __init__(self, role_dirs: Mapping[ArtifactRole, str | Path]) -> None:
        missing = [role.value for role in ArtifactRole if role not in role_dirs]
        if missing:
            raise ValueError(f"missing artifact directories for roles: {missing}")
        self.role_dirs: dict[ArtifactRole, Path] = {
            role: Path(role_dirs[role]) for role in ArtifactRole
        }
        for path in self.role_dirs.values():
            path.mkdir(parents=True, exist_ok=True)

    @classmethod
    def from_settings(cls, settings: Settings) -> "ArtifactStore":
        cfg = settings.artifacts
        base = Path(cfg.base_dir)
        return cls(
            {
                ArtifactRole.RAW_UPLOAD: base / cfg.uploads_dir,
                ArtifactRole.NORMALIZED_VIDEO: base / cfg.normalized_dir,
                ArtifactRole.NARRATION_AUDIO: base / cfg.narration_dir,
                ArtifactRole.SUBTITLE_FILE: base / cfg.subtitles_dir,
                ArtifactRole.COMPOSITE_OUTPUT: base / cfg.output_dir,
            }
        )

    def directories(self) -> list[Path]:
        # Roles may share a directory.
        return sorted(set(self.role_dirs.values()))

    def create(self, role: ArtifactRole, *, request_id: str, extension: str | None = None) -> Artifact:
        ext = extension or DEFAULT_EXTENSIONS[role]
        if not ext.startswith("."):
            ext = f".{ext}"
        path = self.role_dirs[role] / f"{uuid4().hex}{ext}"
        return Artifact(path=path, role=role, request_id=request_id)

    async def release(self, path: str | Path) -> bool:
        """Delete `path` if present. Returns True when a file was removed."""
        p = Path(path)

        def _unlink() -> bool:
            try:
                p.unlink()
            except FileNotFoundError:
                return False
            return True

        try:
            return await asyncio.to_thread(_unlink)
        except OSError as exc:
            logger.warning("artifact release failed (path=%s): %s", p, exc)
            return False

    def open_request(self, request_id: str | None = None) -> "RequestArtifacts":
        return RequestArtifacts(self, request_id or uuid4().hex)


class RequestArtifacts:
    """Artifacts created on behalf of one request."""

    def __init__(self, store: ArtifactStore, request_id: str) -> None:
        self.store = store
        self.request_id = request_id
        self._artifacts: dict[Path, Artifact] = {}

    def __contains__(self, path: object) -> bool:
        return Path(str(path)) in self._artifacts

    def __len__(self) -> int:
        return len(self._artifacts)

    @property
    def artifacts(self) -> list[Artifact]:
        return list(self._artifacts.values())

    def create(self, role: ArtifactRole, extension: str | None = None) -> Path:
        artifact = self.store.create(role, request_id=self.request_id, extension=extension)
        self._artifacts[artifact.path] = artifact
        return artifact.path

    async def release(self, path: str | Path) -> bool:
        p = Path(path)
        if p not in self._artifacts:
            # Only delete what this request created.
            logger.warning(
                "refusing to release foreign artifact (request_id=%s, path=%s)", self.request_id, p
            )
            return False
        removed = await self.store.release(p)
        self._artifacts.pop(p, None)
        return removed

    async def release_all(self) -> int:
        """Best-effort removal of every tracked artifact. Never raises."""
        removed = 0
        for path in list(self._artifacts):
            try:
                if await self.store.release(path):
                    removed += 1
            except Exception:
                logger.exception(
                    "artifact cleanup failed (request_id=%s, path=%s)", self.request_id, path
                )
            self._artifacts.pop(path, None)
        if removed:
            logger.debug("released %d artifacts (request_id=%s)", removed, self.request_id)
        return removed
