"""Provider factory and registry."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from dubline.exceptions import ConfigurationError
from dubline.providers.media.base import MediaEngine
from dubline.providers.tts.base import TTSProvider


def get_tts_provider(config: Mapping[str, Any]) -> TTSProvider:
    """Get speech synthesis provider based on configuration."""
    provider_type = str(config.get("provider", "google_translate")).strip().lower()

    match provider_type:
        case "google_translate" | "google":
            from dubline.providers.tts.google_translate import GoogleTranslateTTSProvider

            return GoogleTranslateTTSProvider(
                language=str(config.get("language") or "en"),
                slow=bool(config.get("slow", False)),
                host=str(config.get("host") or "https://translate.google.com"),
                timeout=float(config.get("timeout", 30.0)),
            )
        case "edge":
            from dubline.providers.tts.edge import EdgeTTSProvider

            return EdgeTTSProvider(
                language=str(config.get("language") or "en"),
                voice=config.get("voice") or None,
                slow=bool(config.get("slow", False)),
            )
        case _:
            raise ConfigurationError(f"Unknown TTS provider: {provider_type}")


def get_media_engine(config: Mapping[str, Any]) -> MediaEngine:
    from dubline.providers.media.ffmpeg import FFmpegProvider

    return FFmpegProvider(
        ffmpeg_bin=str(config.get("ffmpeg_bin") or "ffmpeg"),
        ffprobe_bin=str(config.get("ffprobe_bin") or "ffprobe"),
        timeout_s=config.get("timeout_s"),
    )
