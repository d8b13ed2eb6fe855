"""Subtitle formatters."""

from dubline.formatters.srt import format_srt, format_srt_timestamp, parse_srt, parse_srt_timestamp

__all__ = ["format_srt", "format_srt_timestamp", "parse_srt", "parse_srt_timestamp"]
