"""Provider abstractions for external services."""

from dubline.providers.registry import get_media_engine, get_tts_provider

__all__ = ["get_media_engine", "get_tts_provider"]
