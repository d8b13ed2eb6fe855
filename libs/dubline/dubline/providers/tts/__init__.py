"""Speech synthesis providers."""

from dubline.providers.tts.base import TTSProvider

__all__ = ["TTSProvider"]
