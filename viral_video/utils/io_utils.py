"""I/O utility functions for kit directories."""

import re
from pathlib import Path
from typing import Union

from viral_video.models.schemas import KitLayout


def slugify(text: str) -> str:
    """
    Convert text to a filesystem-safe slug.

    Every run of characters outside [a-z0-9] becomes one hyphen, and
    leading/trailing hyphens are removed.

    Args:
        text: Input text to slugify.

    Returns:
        Slug string ("untitled" if nothing usable remains).
    """
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")
    return slug or "untitled"


def create_kit_dir(base_dir: Union[str, Path], topic: str) -> KitLayout:
    """
    Create the per-topic kit directory with its scenes/ and audio/ folders.

    Re-running a topic reuses the same directory and overwrites its files.

    Args:
        base_dir: Base directory for kits (e.g., "build").
        topic: Video topic.

    Returns:
        Layout of the created kit.
    """
    layout = KitLayout(kit_dir=Path(base_dir) / slugify(topic))
    layout.scenes_dir.mkdir(parents=True, exist_ok=True)
    layout.audio_dir.mkdir(parents=True, exist_ok=True)
    return layout
