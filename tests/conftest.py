"""Shared pytest fixtures and configuration."""

from pathlib import Path

import pytest
from PIL import Image

from viral_video.core.config import resolve_config
from viral_video.core.logging_config import get_logger
from viral_video.models.schemas import KitLayout


@pytest.fixture
def settings():
    """Create test settings instance from defaults only (ignores the real environment)."""
    return resolve_config({}, {})


@pytest.fixture
def logger():
    """Create test logger instance."""
    return get_logger(__name__)


@pytest.fixture
def kit_layout(tmp_path):
    """Create an empty kit directory with scenes/ and audio/."""
    layout = KitLayout(kit_dir=tmp_path / "kit")
    layout.scenes_dir.mkdir(parents=True)
    layout.audio_dir.mkdir(parents=True)
    return layout


@pytest.fixture
def write_scenes():
    """Factory writing small PNG scene images scene01.png ... sceneNN.png into a kit."""

    def _write(layout: KitLayout, count: int) -> list[Path]:
        paths = []
        for i in range(1, count + 1):
            path = layout.scene_image(i)
            Image.new("RGB", (8, 16), color=(i, i, i)).save(path, "PNG")
            paths.append(path)
        return paths

    return _write
