"""Storage repository for video kit artifacts."""

import json
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from viral_video.core.exceptions import ValidationError
from viral_video.models.schemas import KitLayout, Plan, StoryboardRow
from viral_video.services.storyboard import parse_storyboard

README_TEMPLATE = """# Video kit for: {topic}
- Scenes: {scenes_count} PNGs in scenes/
- Voiceover: audio/voiceover.mp3 (voice: {voice})
- Captions: captions.ass
- Storyboard: storyboard.csv
- Duration: ~{video_sec}s, {per_scene}s per scene
- Image style: {image_style}

## Render
If ffmpeg is installed, this CLI can render output.mp4 automatically.
- macOS:  brew install ffmpeg
- Ubuntu: sudo apt-get update && sudo apt-get install -y ffmpeg

To re-render after editing scenes or adding audio/music.mp3:
    viral render {kit_dir}
"""


class KitRepository:
    """Reads and writes the persisted files of one kit."""

    def __init__(self, layout: KitLayout, logger: Any):
        """
        Initialize the repository.

        Args:
            layout: Kit layout to read from and write to
            logger: Logger instance
        """
        self.layout = layout
        self.logger = logger

    def _write_text(self, path, content: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        self.logger.debug(f"Wrote {path}")

    def save_plan(self, plan: Plan) -> None:
        """Save the plan as script.json (camelCase keys)."""
        plan_dict = plan.model_dump(mode="json", by_alias=True)
        self._write_text(self.layout.script_json, json.dumps(plan_dict, indent=2, ensure_ascii=False))
        self.logger.info(f"Plan saved to: {self.layout.script_json}")

    def load_plan(self) -> Plan:
        """
        Load script.json.

        Raises:
            ValidationError: If the file is missing or malformed
        """
        path = self.layout.script_json
        if not path.is_file():
            raise ValidationError(f"Missing plan file: {path}")
        try:
            with open(path, "r", encoding="utf-8") as f:
                return Plan.model_validate(json.load(f))
        except (ValueError, PydanticValidationError) as e:
            raise ValidationError(f"Malformed plan file: {path}", {"error": str(e)}) from e

    def save_voiceover_text(self, text: str) -> None:
        self._write_text(self.layout.voiceover_txt, text)

    def save_captions(self, ass_text: str) -> None:
        self._write_text(self.layout.captions_ass, ass_text)

    def save_storyboard(self, csv_text: str) -> None:
        self._write_text(self.layout.storyboard_csv, csv_text)

    def load_storyboard(self) -> list[StoryboardRow]:
        """
        Parse storyboard.csv.

        Raises:
            ValidationError: If the file is missing or malformed
        """
        path = self.layout.storyboard_csv
        if not path.is_file():
            raise ValidationError(f"Missing storyboard: {path}")
        return parse_storyboard(path.read_text(encoding="utf-8"))

    def save_readme(
        self,
        topic: str,
        scenes_count: int,
        voice: str,
        video_sec: int,
        per_scene: int,
        image_style: str,
    ) -> None:
        """Write the human-readable README.md for the kit."""
        self._write_text(
            self.layout.readme,
            README_TEMPLATE.format(
                topic=topic,
                scenes_count=scenes_count,
                voice=voice,
                video_sec=video_sec,
                per_scene=per_scene,
                image_style=image_style,
                kit_dir=self.layout.kit_dir,
            ),
        )
