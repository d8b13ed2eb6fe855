from __future__ import annotations

import httpx
import pytest

from dubline.exceptions import ConfigurationError, ProviderError
from dubline.providers.registry import get_media_engine, get_tts_provider
from dubline.providers.tts.google_translate import (
    MAX_CHARS,
    GoogleTranslateTTSProvider,
    split_long_text,
)


def _provider(handler) -> GoogleTranslateTTSProvider:
    provider = GoogleTranslateTTSProvider(language="en", host="https://tts.test/")
    provider._client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return provider


def test_split_long_text_short_input() -> None:
    assert split_long_text("  hello   world ") == ["hello world"]
    assert split_long_text("") == []


def test_split_long_text_prefers_spaces() -> None:
    text = " ".join(["word"] * 120)
    pieces = split_long_text(text)
    assert len(pieces) > 1
    assert all(len(p) <= MAX_CHARS for p in pieces)
    assert " ".join(pieces) == text


def test_split_long_text_falls_back_to_punctuation_then_hard_cut() -> None:
    assert split_long_text("abc,defghij", max_chars=5) == ["abc,", "defgh", "ij"]
    assert split_long_text("x" * 12, max_chars=5) == ["xxxxx", "xxxxx", "xx"]


@pytest.mark.asyncio
async def test_synthesize_concatenates_pieces() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, content=f"<{request.url.params['idx']}>".encode())

    provider = _provider(handler)
    audio = await provider.synthesize(" ".join(["word"] * 120))
    await provider.close()

    assert len(requests) > 1
    assert audio == b"".join(f"<{i}>".encode() for i in range(len(requests)))
    first = requests[0].url
    assert first.path == "/translate_tts"
    assert first.params["client"] == "tw-ob"
    assert first.params["tl"] == "en"
    assert first.params["total"] == str(len(requests))
    assert first.params["ttsspeed"] == "1"


@pytest.mark.asyncio
async def test_http_error_becomes_provider_error() -> None:
    provider = _provider(lambda request: httpx.Response(500))
    with pytest.raises(ProviderError) as excinfo:
        await provider.synthesize("hello")
    assert excinfo.value.provider == "google_translate"
    await provider.close()


@pytest.mark.asyncio
async def test_empty_piece_is_an_error() -> None:
    provider = _provider(lambda request: httpx.Response(200, content=b""))
    with pytest.raises(ProviderError, match="empty audio"):
        await provider.synthesize("hello")
    await provider.close()


def test_registry_selects_providers(tmp_path) -> None:
    provider = get_tts_provider({"provider": "google", "language": "de", "slow": True})
    assert isinstance(provider, GoogleTranslateTTSProvider)
    assert provider.language == "de" and provider.slow

    with pytest.raises(ConfigurationError):
        get_tts_provider({"provider": "nope"})

    ffmpeg = tmp_path / "ffmpeg"
    ffmpeg.write_text("")
    ffprobe = tmp_path / "ffprobe"
    ffprobe.write_text("")
    engine = get_media_engine({"ffmpeg_bin": str(ffmpeg), "ffprobe_bin": str(ffprobe), "timeout_s": 9})
    assert engine.ffmpeg_bin == str(ffmpeg)
    assert engine.timeout_s == 9


class _FakeCommunicate:
    instances: list["_FakeCommunicate"] = []

    def __init__(self, text: str, voice: str, rate: str = "+0%") -> None:
        self.text = text
        self.voice = voice
        self.rate = rate
        _FakeCommunicate.instances.append(self)

    async def stream(self):
        yield {"type": "WordBoundary", "offset": 0}
        yield {"type": "audio", "data": b"ab"}
        yield {"type": "audio", "data": b"cd"}


@pytest.mark.asyncio
async def test_edge_provider_collects_audio_chunks(monkeypatch) -> None:
    from dubline.providers.tts import edge

    _FakeCommunicate.instances.clear()
    monkeypatch.setattr(edge.edge_tts, "Communicate", _FakeCommunicate)
    provider = get_tts_provider({"provider": "edge", "language": "de-AT", "slow": True})

    assert await provider.synthesize("hallo") == b"abcd"
    call = _FakeCommunicate.instances[0]
    assert (call.voice, call.rate) == ("de-DE-KatjaNeural", "-25%")


@pytest.mark.asyncio
async def test_edge_provider_wraps_failures(monkeypatch) -> None:
    from dubline.providers.tts import edge

    class _Broken(_FakeCommunicate):
        async def stream(self):
            raise RuntimeError("no audio was received")
            yield {}

    monkeypatch.setattr(edge.edge_tts, "Communicate", _Broken)
    provider = edge.EdgeTTSProvider(voice="en-GB-SoniaNeural")

    with pytest.raises(ProviderError, match="no audio was received"):
        await provider.synthesize("hello")
