"""Canonical error codes surfaced to API clients."""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    UNKNOWN = "UNKNOWN"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    INVALID_MEDIA = "INVALID_MEDIA"

    PROBE_FAILED = "PROBE_FAILED"
    TRANSCODE_FAILED = "TRANSCODE_FAILED"
    SYNTHESIS_FAILED = "SYNTHESIS_FAILED"
    EMPTY_TEXT = "EMPTY_TEXT"
    COMPOSITION_FAILED = "COMPOSITION_FAILED"
    STREAM_FAILED = "STREAM_FAILED"

    PROVIDER_FAILED = "PROVIDER_FAILED"
