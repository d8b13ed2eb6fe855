"""Probed media metadata."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class MediaProbe:
    """Read-only view of what ffprobe reports for a file."""

    duration: float
    format_name: str = ""
    video_codec: str | None = None
    audio_codec: str | None = None
    width: int | None = None
    height: int | None = None

    @property
    def has_video(self) -> bool:
        return self.video_codec is not None

    @property
    def has_audio(self) -> bool:
        return self.audio_codec is not None

    @property
    def containers(self) -> set[str]:
        return {c.strip().lower() for c in self.format_name.split(",") if c.strip()}
