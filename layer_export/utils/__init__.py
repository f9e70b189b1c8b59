"""Utility helpers for the layer export engine."""

from .formatting import build_resource_filename, format_coordinate, parse_datalayer_info
from .io import detect_encoding, ensure_directory, is_within, safe_filename

__all__ = [
    "build_resource_filename",
    "format_coordinate",
    "parse_datalayer_info",
    "detect_encoding",
    "ensure_directory",
    "is_within",
    "safe_filename",
]
