"""Media engine abstraction (probe + transcode)."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from dubline.models.media import MediaProbe


class MediaEngine(ABC):
    @abstractmethod
    async def probe(self, path: str) -> MediaProbe:
        """Return container/stream metadata; raise ProbeError when unreadable."""

    @abstractmethod
    async def transcode(self, args: Sequence[str], output_path: str) -> str:
        """Run the engine with `args` (inputs, filters, options) writing `output_path`.

        Raises EngineError on a non-zero exit.
        """

    async def close(self) -> None:  # pragma: no cover
        return None
