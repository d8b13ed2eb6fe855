"""Subtitle cue model."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Cue:
    """One subtitle line.

    Times are seconds on a whole-millisecond grid. Compare cue boundaries through
    `start_ms`/`end_ms`: `next.start_ms == prev.end_ms + gap_ms` holds exactly,
    while the float seconds only agree to within rounding.
    """

    index: int  # 1-based
    start: float
    end: float
    text: str

    @property
    def start_ms(self) -> int:
        return int(round(self.start * 1000))

    @property
    def end_ms(self) -> int:
        return int(round(self.end * 1000))

    @property
    def duration(self) -> float:
        return self.end - self.start

    @property
    def duration_ms(self) -> int:
        return self.end_ms - self.start_ms
