"""Microsoft Edge neural voices via edge-tts."""

from __future__ import annotations

import logging

import edge_tts

from dubline.exceptions import ProviderError
from dubline.providers.tts.base import TTSProvider

logger = logging.getLogger(__name__)

_DEFAULT_VOICES = {
    "en": "en-US-AriaNeural",
    "de": "de-DE-KatjaNeural",
    "ja": "ja-JP-NanamiNeural",
    "vi": "vi-VN-HoaiMyNeural",
}


class EdgeTTSProvider(TTSProvider):
    name = "edge"

    def __init__(self, *, language: str = "en", voice: str | None = None, slow: bool = False) -> None:
        self.voice = voice or _DEFAULT_VOICES.get(language.split("-")[0].lower(), _DEFAULT_VOICES["en"])
        self.rate = "-25%" if slow else "+0%"

    async def synthesize(self, text: str) -> bytes:
        communicate = edge_tts.Communicate(text, self.voice, rate=self.rate)
        audio = bytearray()
        try:
            async for chunk in communicate.stream():
                if chunk.get("type") == "audio":
                    audio.extend(chunk.get("data") or b"")
        except Exception as exc:
            raise ProviderError(self.name, str(exc)) from exc
        logger.debug("edge synthesized %d bytes (voice=%s)", len(audio), self.voice)
        return bytes(audio)
