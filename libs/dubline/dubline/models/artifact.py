"""Artifact model."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class ArtifactRole(Enum):
    RAW_UPLOAD = "raw_upload"
    NORMALIZED_VIDEO = "normalized_video"
    NARRATION_AUDIO = "narration_audio"
    SUBTITLE_FILE = "subtitle_file"
    COMPOSITE_OUTPUT = "composite_output"


DEFAULT_EXTENSIONS: dict[ArtifactRole, str] = {
    ArtifactRole.RAW_UPLOAD: ".mp4",
    ArtifactRole.NORMALIZED_VIDEO: ".mp4",
    ArtifactRole.NARRATION_AUDIO: ".mp3",
    ArtifactRole.SUBTITLE_FILE: ".srt",
    ArtifactRole.COMPOSITE_OUTPUT: ".mp4",
}


@dataclass(frozen=True)
class Artifact:
    path: Path
    role: ArtifactRole
    request_id: str
