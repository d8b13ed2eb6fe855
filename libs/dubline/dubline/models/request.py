"""Render request/result models."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from dubline.models.cue import Cue

if TYPE_CHECKING:
    from dubline.storage.artifact_store import RequestArtifacts


@dataclass
class RenderRequest:
    video_path: Path
    text: str
    original_filename: str = ""
    mime_type: str | None = None


@dataclass
class RenderResult:
    request_id: str
    output_path: Path
    download_name: str
    size_bytes: int
    narration_duration: float
    cues: list[Cue] = field(default_factory=list)
    artifacts: "RequestArtifacts | None" = field(default=None, repr=False)

    async def aclose(self) -> None:
        """Release every artifact of the request, including the output."""
        if self.artifacts is not None:
            await self.artifacts.release_all()
