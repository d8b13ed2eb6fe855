"""Media engine implementations."""

from dubline.providers.media.base import MediaEngine
from dubline.providers.media.ffmpeg import FFmpegProvider, parse_probe_payload

__all__ = ["FFmpegProvider", "MediaEngine", "parse_probe_payload"]
