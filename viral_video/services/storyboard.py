"""Storyboard Compiler - per-scene timing table shared by kit generation and rendering."""

from pathlib import Path
from typing import Sequence, Union

from viral_video.core.exceptions import ValidationError
from viral_video.models.schemas import StoryboardRow

STORYBOARD_HEADER = "filename,start,duration,cue"


def storyboard_rows(scene_files: Sequence[Union[str, Path]], per_scene: int) -> list[StoryboardRow]:
    """
    Build one row per scene file with cumulative start offsets.

    Args:
        scene_files: Scene image paths in scene order
        per_scene: Uniform duration of each scene in seconds

    Returns:
        Storyboard rows; row i starts at i * per_scene
    """
    rows = []
    t = 0
    for i, scene_file in enumerate(scene_files):
        rows.append(StoryboardRow(filename=Path(scene_file).name, start=t, duration=per_scene, cue=i + 1))
        t += per_scene
    return rows


def to_storyboard(scene_files: Sequence[Union[str, Path]], per_scene: int) -> str:
    """Serialize the storyboard as CSV text with a header row."""
    lines = [STORYBOARD_HEADER]
    for row in storyboard_rows(scene_files, per_scene):
        lines.append(f"{row.filename},{row.start},{row.duration},{row.cue}")
    return "\n".join(lines) + "\n"


def _parse_int(value: str, field: str, lineno: int, raw: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise ValidationError(
            f"Storyboard line {lineno}: {field} must be an integer -> '{raw}'",
            {"line": lineno},
        ) from None


def parse_storyboard(text: str) -> list[StoryboardRow]:
    """
    Parse and validate storyboard CSV text.

    Carriage returns are stripped, blank lines ignored and the header row
    skipped. Each row must name a .png file and carry integer start,
    duration and cue fields, with every row starting where the previous
    one ended.

    Args:
        text: storyboard.csv contents

    Returns:
        Parsed rows in file order

    Raises:
        ValidationError: On any malformed row
    """
    rows: list[StoryboardRow] = []
    lines = text.replace("\r", "").split("\n")
    for lineno, raw in enumerate(lines, start=1):
        if not raw.strip():
            continue
        fields = [field.strip() for field in raw.split(",")]
        if lineno == 1 and fields[0] == "filename":
            continue

        if len(fields) < 3 or not all(fields[:3]):
            raise ValidationError(f"Storyboard line {lineno}: malformed row -> '{raw}'", {"line": lineno})

        filename = fields[0]
        if not filename.lower().endswith(".png"):
            raise ValidationError(
                f"Storyboard line {lineno}: filename must be a .png -> '{filename}'", {"line": lineno}
            )

        start = _parse_int(fields[1], "start", lineno, raw)
        duration = _parse_int(fields[2], "duration", lineno, raw)
        cue = _parse_int(fields[3], "cue", lineno, raw) if len(fields) > 3 and fields[3] else len(rows) + 1

        if duration <= 0:
            raise ValidationError(
                f"Storyboard line {lineno}: duration must be positive -> '{raw}'", {"line": lineno}
            )
        expected_start = rows[-1].end if rows else 0
        if start != expected_start:
            raise ValidationError(
                f"Storyboard line {lineno}: start {start} does not follow previous row (expected {expected_start})",
                {"line": lineno},
            )

        rows.append(StoryboardRow(filename=filename, start=start, duration=duration, cue=cue))

    if not rows:
        raise ValidationError("Storyboard has no scene rows")
    return rows
