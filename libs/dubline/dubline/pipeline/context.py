"""Pipeline context typing.

Stages hand each other explicit paths through this dict; nothing else is shared.
"""

from __future__ import annotations

from typing import TypedDict

from dubline.models.cue import Cue
from dubline.models.media import MediaProbe


class RenderContext(TypedDict, total=False):
    request_id: str
    original_filename: str
    mime_type: str | None

    text: str
    cue_chunks: list[str]

    raw_video_path: str
    video_path: str
    video_probe: MediaProbe

    narration_path: str
    narration_duration: float

    subtitle_path: str
    cues: list[Cue]

    output_path: str
