"""Dubline: narrated, subtitled video rendering pipeline."""

__version__ = "0.1.0"
