"""Text utility functions for narration processing."""

import re
from typing import Optional

# A sentence ends at . ! or ? followed by whitespace
_SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+")
_NEWLINES = re.compile(r"\n+")


def estimate_spoken_duration(text: str, words_per_minute: int = 150) -> int:
    """
    Estimate the spoken duration of text in seconds.

    Args:
        text: Text to estimate duration for.
        words_per_minute: Average speaking rate (default 150 WPM).

    Returns:
        Estimated duration in seconds.
    """
    word_count = len(text.split())
    minutes = word_count / words_per_minute
    seconds = int(minutes * 60)
    return seconds


def split_sentences(text: str, limit: Optional[int] = None) -> list[str]:
    """
    Split text into sentence-like fragments.

    Newlines are collapsed to spaces first. Empty fragments are dropped and
    anything past ``limit`` fragments is discarded.

    Args:
        text: Text to split.
        limit: Maximum number of fragments to keep.

    Returns:
        Ordered list of fragments.
    """
    flattened = _NEWLINES.sub(" ", text)
    fragments = [part for part in _SENTENCE_BOUNDARY.split(flattened) if part]
    if limit is not None:
        fragments = fragments[:limit]
    return fragments
