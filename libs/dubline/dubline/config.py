"""Configuration management using pydantic-settings."""

from pathlib import Path
from typing import Any

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from dubline.exceptions import ConfigurationError

_ENV_FILES = (".env", "../.env", "../../.env")

_REPO_ROOT = Path(__file__).resolve().parents[3]


def _resolve_repo_path(value: str) -> str:
    raw = str(value or "").strip()
    if not raw:
        return raw
    p = Path(raw)
    if p.is_absolute():
        return str(p)
    return str((_REPO_ROOT / p).resolve())


class ArtifactConfig(BaseSettings):
    """Per-request temp file layout and the retention sweep."""

    model_config = SettingsConfigDict(
        env_prefix="ARTIFACTS_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    base_dir: str = "./data"
    uploads_dir: str = "uploads"
    normalized_dir: str = "normalized"
    narration_dir: str = "assets"
    subtitles_dir: str = "subtitles"
    output_dir: str = "output"

    retention_s: float = Field(default=600.0, gt=0)
    sweep_interval_s: float = Field(default=60.0, gt=0)

    @model_validator(mode="after")
    def _validate_dirs(self) -> "ArtifactConfig":
        # Paths end up inside the FFmpeg subtitles filter, which cannot carry quotes.
        for name in (
            "base_dir",
            "uploads_dir",
            "normalized_dir",
            "narration_dir",
            "subtitles_dir",
            "output_dir",
        ):
            value = str(getattr(self, name) or "")
            if "'" in value:
                raise ConfigurationError(f"ARTIFACTS_{name.upper()} must not contain quotes: {value!r}")
        self.base_dir = _resolve_repo_path(self.base_dir)
        return self


class MediaConfig(BaseSettings):
    """Transcoding engine configuration."""

    model_config = SettingsConfigDict(
        env_prefix="MEDIA_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    ffmpeg_bin: str = "ffmpeg"
    ffprobe_bin: str = "ffprobe"
    max_width: int = Field(default=1280, ge=16)
    preset: str = "veryfast"
    crf: int = Field(default=23, ge=0, le=51)
    audio_bitrate: str = "128k"
    timeout_s: float | None = Field(default=None, gt=0)  # 不设置则不限时


class NarrationConfig(BaseSettings):
    """Speech synthesis provider configuration."""

    model_config = SettingsConfigDict(
        env_prefix="NARRATION_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    provider: str = "google_translate"
    language: str = "en"
    slow: bool = False
    host: str = "https://translate.google.com"
    voice: str | None = None
    timeout: float = Field(default=30.0, gt=0)


class CueConfig(BaseSettings):
    """Subtitle cue timing."""

    model_config = SettingsConfigDict(
        env_prefix="CUES_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    chunk_size: int = Field(default=6, ge=1, description="Words per subtitle cue.")
    gap_s: float = Field(default=0.15, ge=0, description="Silence between consecutive cues.")
    min_duration_s: float = Field(default=0.5, description="Floor for every cue span.")

    @model_validator(mode="after")
    def _validate_floor(self) -> "CueConfig":
        if float(self.min_duration_s) <= 0:
            raise ConfigurationError("CUES_MIN_DURATION_S must be > 0")
        return self


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt: str = "%Y-%m-%d %H:%M:%S"
    console: bool = True
    file: str | None = None
    max_bytes: int = Field(default=10 * 1024 * 1024, ge=0)
    backup_count: int = Field(default=5, ge=0)
    third_party_level: str = "WARNING"


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=_ENV_FILES, env_file_encoding="utf-8", extra="ignore"
    )

    log_dir: str = "./logs"
    upload_max_bytes: int = Field(default=2 * 1024 * 1024 * 1024, ge=1)
    port: int = 3000
    cors_origins: list[str] = ["*"]

    artifacts: ArtifactConfig = ArtifactConfig()
    media: MediaConfig = MediaConfig()
    narration: NarrationConfig = NarrationConfig()
    cues: CueConfig = CueConfig()

    # Logging
    logging: LoggingSettings = LoggingSettings()

    @model_validator(mode="after")
    def _resolve_paths(self) -> "Settings":
        # Running apps with `uv run --directory apps/*` changes CWD; keep paths stable.
        self.log_dir = _resolve_repo_path(self.log_dir)
        Path(self.log_dir).mkdir(parents=True, exist_ok=True)
        return self

    def narration_config(self) -> dict[str, Any]:
        """Return a provider config dict for the TTS registry."""
        cfg = self.narration.model_dump()
        provider = str(cfg.get("provider") or "").strip().lower()
        if not provider:
            raise ConfigurationError("NARRATION_PROVIDER is not configured")
        cfg["provider"] = provider
        return cfg
