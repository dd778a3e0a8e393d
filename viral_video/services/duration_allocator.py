"""Duration Allocator - splits the target video length across sections and scenes."""

import math
from typing import Sequence

from viral_video.core.exceptions import ConfigurationError

# Shortest section that still renders as a usable segment
MIN_SECTION_SECONDS = 2


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (round() would go to even)."""
    return int(math.floor(value + 0.5))


def allocate_section_durations(seconds: Sequence[float], total: int) -> list[int]:
    """
    Rescale section lengths so they sum exactly to ``total``.

    Each section is scaled by ``total / sum(seconds)``, rounded and floored
    at MIN_SECTION_SECONDS. The rounding drift is then absorbed by the last
    section, one second at a time, until the sum equals ``total``.

    Args:
        seconds: Requested section lengths (any positive scale)
        total: Target total in whole seconds

    Returns:
        Integer durations, one per section, summing to ``total``

    Raises:
        ConfigurationError: If there are no sections or they sum to zero
    """
    if total <= 0:
        raise ConfigurationError(f"Total duration must be positive, got {total}")
    if not seconds:
        raise ConfigurationError("Cannot allocate durations without sections")

    requested = sum(seconds)
    if requested <= 0:
        raise ConfigurationError(
            "Section durations sum to zero; cannot scale them to the target length",
            {"sections": len(seconds)},
        )

    scale = total / requested
    durations = [max(MIN_SECTION_SECONDS, round_half_up(s * scale)) for s in seconds]

    current = sum(durations)
    while current > total:
        durations[-1] -= 1
        current -= 1
    while current < total:
        durations[-1] += 1
        current += 1

    return durations


def per_scene_seconds(total: int, scene_count: int) -> int:
    """
    Uniform on-screen seconds per scene: ``round(total / scene_count)``.

    Not reconciled against ``total``: the storyboard may end up to
    scene_count - 1 seconds away from it.
    """
    if scene_count <= 0:
        raise ConfigurationError(f"Scene count must be positive, got {scene_count}")
    if total <= 0:
        raise ConfigurationError(f"Total duration must be positive, got {total}")
    per_scene = round_half_up(total / scene_count)
    if per_scene < 1:
        raise ConfigurationError(
            f"{total}s is too short for {scene_count} scenes",
            {"video_sec": total, "scenes_count": scene_count},
        )
    return per_scene
