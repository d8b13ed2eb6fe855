"""Google Translate speech endpoint over httpx."""

from __future__ import annotations

import logging

import httpx

from dubline.exceptions import ProviderError
from dubline.providers.tts.base import TTSProvider

logger = logging.getLogger(__name__)

MAX_CHARS = 200
_PUNCTUATION = ".,!?;:)\"'"


def split_long_text(text: str, max_chars: int = MAX_CHARS) -> list[str]:
    """Split text into pieces the endpoint accepts.

    Prefer the last space inside the window, then the last punctuation mark,
    then a hard cut.
    """
    remaining = " ".join(str(text or "").split())
    pieces: list[str] = []
    while remaining:
        if len(remaining) <= max_chars:
            pieces.append(remaining)
            break
        window = remaining[: max_chars + 1]
        cut = window.rfind(" ")
        if cut <= 0:
            cut = max((window.rfind(p, 0, max_chars) for p in _PUNCTUATION), default=-1) + 1
        if cut <= 0:
            cut = max_chars
        head = remaining[:cut].strip()
        if head:
            pieces.append(head)
        remaining = remaining[cut:].strip()
    return pieces


class GoogleTranslateTTSProvider(TTSProvider):
    name = "google_translate"

    def __init__(
        self,
        *,
        language: str = "en",
        slow: bool = False,
        host: str = "https://translate.google.com",
        timeout: float = 30.0,
    ) -> None:
        self.language = language
        self.slow = bool(slow)
        self.host = host.rstrip("/")
        self.timeout = timeout
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout))
        return self._client

    async def _fetch(self, client: httpx.AsyncClient, piece: str, idx: int, total: int) -> bytes:
        params = {
            "ie": "UTF-8",
            "q": piece,
            "tl": self.language,
            "total": str(total),
            "idx": str(idx),
            "textlen": str(len(piece)),
            "client": "tw-ob",
            "prev": "input",
            "ttsspeed": "0.24" if self.slow else "1",
        }
        try:
            response = await client.get(f"{self.host}/translate_tts", params=params)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise ProviderError(self.name, str(exc)) from exc
        return response.content

    async def synthesize(self, text: str) -> bytes:
        pieces = split_long_text(text)
        if not pieces:
            raise ProviderError(self.name, "nothing to synthesize")
        client = await self._get_client()
        audio = bytearray()
        for idx, piece in enumerate(pieces):
            chunk = await self._fetch(client, piece, idx, len(pieces))
            if not chunk:
                raise ProviderError(self.name, f"empty audio for piece {idx + 1}/{len(pieces)}")
            # MPEG frames concatenate into a playable stream.
            audio.extend(chunk)
        logger.debug("google_translate synthesized %d pieces (%d bytes)", len(pieces), len(audio))
        return bytes(audio)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
