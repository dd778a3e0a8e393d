"""Utility functions for the viral video kit generator."""

from viral_video.utils.error_handler import format_error_message, get_fallback_suggestion
from viral_video.utils.io_utils import create_kit_dir, slugify
from viral_video.utils.text_utils import estimate_spoken_duration, split_sentences

__all__ = [
    "create_kit_dir",
    "slugify",
    "estimate_spoken_duration",
    "split_sentences",
    "format_error_message",
    "get_fallback_suggestion",
]
