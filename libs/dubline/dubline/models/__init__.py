"""Data models for Dubline."""

from dubline.models.artifact import DEFAULT_EXTENSIONS, Artifact, ArtifactRole
from dubline.models.cue import Cue
from dubline.models.media import MediaProbe
from dubline.models.request import RenderRequest, RenderResult

__all__ = [
    "Artifact",
    "ArtifactRole",
    "Cue",
    "DEFAULT_EXTENSIONS",
    "MediaProbe",
    "RenderRequest",
    "RenderResult",
]
