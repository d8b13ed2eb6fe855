"""Dubline exception hierarchy."""

from __future__ import annotations

from dubline.error_codes import ErrorCode


class DublineError(Exception):
    """Base error for Dubline."""


class ConfigurationError(DublineError):
    """Raised when configuration is invalid."""


class ValidationError(DublineError):
    """Raised when a render request is missing its video or text."""

    error_code = ErrorCode.VALIDATION_FAILED


class EngineError(DublineError):
    """Raised when an external media binary exits non-zero or cannot start."""

    def __init__(self, cmd: list[str], returncode: int | None, stderr: str = "") -> None:
        tail = stderr.strip()[-2000:]
        super().__init__(f"{cmd[0] if cmd else 'engine'} failed (code={returncode}): {tail}")
        self.cmd = list(cmd)
        self.returncode = returncode
        self.stderr = stderr


class ProviderError(DublineError):
    """Raised when an external provider call fails."""

    def __init__(
        self,
        provider: str,
        message: str,
        *,
        error_code: ErrorCode | str | None = None,
    ) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.message = message
        self.error_code = error_code


class PipelineStageError(DublineError):
    """Raised when a pipeline stage fails. Always fatal for the request."""

    default_stage = "pipeline"
    default_error_code: ErrorCode = ErrorCode.UNKNOWN

    def __init__(
        self,
        message: str,
        *,
        stage: str | None = None,
        request_id: str | None = None,
        error_code: ErrorCode | str | None = None,
    ) -> None:
        stage = stage or self.default_stage
        prefix = f"{stage}"
        if request_id:
            prefix = f"{prefix} (request_id={request_id})"
        super().__init__(f"{prefix}: {message}")
        self.stage = stage
        self.request_id = request_id
        self.message = message
        self.error_code = error_code if error_code is not None else self.default_error_code


class ProbeError(PipelineStageError):
    """Media metadata could not be read (corrupt or unsupported input)."""

    default_stage = "probe"
    default_error_code = ErrorCode.PROBE_FAILED


class TranscodeError(PipelineStageError):
    default_stage = "normalize"
    default_error_code = ErrorCode.TRANSCODE_FAILED


class SynthesisError(PipelineStageError):
    default_stage = "narration"
    default_error_code = ErrorCode.SYNTHESIS_FAILED


class EmptyTextError(PipelineStageError):
    default_stage = "cue_timeline"
    default_error_code = ErrorCode.EMPTY_TEXT


class CompositionError(PipelineStageError):
    default_stage = "compose"
    default_error_code = ErrorCode.COMPOSITION_FAILED


class StreamError(DublineError):
    """Raised when the final artifact cannot be delivered to the caller."""

    error_code = ErrorCode.STREAM_FAILED
