"""Speech synthesis provider abstraction."""

from __future__ import annotations

from abc import ABC, abstractmethod


class TTSProvider(ABC):
    name: str = "tts"

    @abstractmethod
    async def synthesize(self, text: str) -> bytes:
        """Return encoded audio bytes for `text`. Raise ProviderError on failure."""

    async def close(self) -> None:  # pragma: no cover
        return None
