"""Artifact storage."""

from dubline.config import Settings
from dubline.storage.artifact_store import ArtifactStore, RequestArtifacts, safe_extension
from dubline.storage.sweeper import RetentionSweeper


def get_artifact_store(settings: Settings) -> ArtifactStore:
    return ArtifactStore.from_settings(settings)


def get_retention_sweeper(settings: Settings, store: ArtifactStore) -> RetentionSweeper:
    return RetentionSweeper(
        store,
        retention_s=float(settings.artifacts.retention_s),
        interval_s=float(settings.artifacts.sweep_interval_s),
    )


__all__ = [
    "ArtifactStore",
    "RequestArtifacts",
    "RetentionSweeper",
    "get_artifact_store",
    "get_retention_sweeper",
    "safe_extension",
]
