"""Pydantic models and schemas for the video kit pipeline."""

from enum import Enum
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# Enums
# ============================================================================


class ImageStyle(str, Enum):
    """Visual style requested for scene images."""

    CARTOON = "cartoon"
    REALISTIC = "realistic"
    AI_GENERATED = "ai-generated"


class AudioMix(str, Enum):
    """Which optional audio tracks feed the final mux."""

    NONE = "none"
    VOICE_ONLY = "voice_only"
    MUSIC_ONLY = "music_only"
    BOTH = "both"


# ============================================================================
# Plan Models
# ============================================================================


class Section(BaseModel):
    """A labelled block of narration with a target length."""

    model_config = ConfigDict(populate_by_name=True)

    label: str = Field(default="", description="Section label (e.g. 'Intro/Context', 'Point 1')")
    seconds: Union[int, float] = Field(default=0, alias="sec", ge=0, description="Target seconds for this section")
    text: str = Field(default="", description="Narration text")


class Scene(BaseModel):
    """One still image and its on-screen duration."""

    model_config = ConfigDict(populate_by_name=True)

    index: int = Field(..., alias="i", ge=1, description="Scene number (1-indexed)")
    seconds: int = Field(..., alias="sec", description="On-screen seconds")
    text: str = Field(default="", description="Narration excerpt shown with this scene")


class Plan(BaseModel):
    """Script plan for one video, persisted as script.json."""

    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(..., description="Video title")
    hook: str = Field(default="", description="0-3s opening hook")
    sections: list[Section] = Field(default_factory=list, description="Narration sections, in order")
    scenes: list[Scene] = Field(default_factory=list, description="Scenes, in order")
    image_prompts: list[str] = Field(
        default_factory=list, alias="imagePrompts", description="One image prompt per scene"
    )
    tts_style: str = Field(
        default="male, smooth, educational", alias="ttsStyle", description="Narration style tag"
    )
    disclaimer: str = Field(default="", description="Disclaimer read at the end")

    def narration_text(self) -> str:
        """Hook, section texts and disclaimer joined by newlines, skipping empty parts."""
        parts = [self.hook, *(section.text for section in self.sections), self.disclaimer]
        return "\n".join(part for part in parts if part)


# ============================================================================
# Timing Models
# ============================================================================


class CaptionCue(BaseModel):
    """A timed caption span. ``end`` is exclusive."""

    start: int = Field(..., ge=0, description="Start second")
    end: int = Field(..., ge=0, description="End second")
    text: str = Field(default="", description="Caption text")


class StoryboardRow(BaseModel):
    """One scene row of storyboard.csv."""

    filename: str = Field(..., description="Scene image basename")
    start: int = Field(..., ge=0, description="Start offset in seconds")
    duration: int = Field(..., description="Duration in seconds")
    cue: int = Field(..., description="1-based scene index")

    @property
    def end(self) -> int:
        return self.start + self.duration

    @property
    def stem(self) -> str:
        return Path(self.filename).stem


# ============================================================================
# Kit / Render Models
# ============================================================================


class KitLayout(BaseModel):
    """Fixed artifact locations inside one kit directory."""

    kit_dir: Path = Field(..., description="Per-topic kit directory")

    @property
    def scenes_dir(self) -> Path:
        return self.kit_dir / "scenes"

    @property
    def audio_dir(self) -> Path:
        return self.kit_dir / "audio"

    @property
    def build_dir(self) -> Path:
        return self.kit_dir / "build"

    @property
    def segments_dir(self) -> Path:
        return self.build_dir / "segs"

    @property
    def script_json(self) -> Path:
        return self.kit_dir / "script.json"

    @property
    def voiceover_txt(self) -> Path:
        return self.kit_dir / "voiceover.txt"

    @property
    def captions_ass(self) -> Path:
        return self.kit_dir / "captions.ass"

    @property
    def storyboard_csv(self) -> Path:
        return self.kit_dir / "storyboard.csv"

    @property
    def readme(self) -> Path:
        return self.kit_dir / "README.md"

    @property
    def voiceover_mp3(self) -> Path:
        return self.audio_dir / "voiceover.mp3"

    @property
    def music_mp3(self) -> Path:
        return self.audio_dir / "music.mp3"

    @property
    def music_norm(self) -> Path:
        return self.build_dir / "music_norm.mp3"

    @property
    def concat_txt(self) -> Path:
        return self.build_dir / "concat.txt"

    @property
    def video_nocaptions(self) -> Path:
        return self.build_dir / "video_nocaptions.mp4"

    @property
    def video_captions(self) -> Path:
        return self.build_dir / "video_captions.mp4"

    @property
    def output_mp4(self) -> Path:
        return self.kit_dir / "output.mp4"

    def scene_image(self, index: int) -> Path:
        """Zero-padded scene image path, so name order equals scene order."""
        return self.scenes_dir / f"scene{index:02d}.png"

    def segment_for(self, row: StoryboardRow) -> Path:
        return self.segments_dir / f"{row.stem}.mp4"


def _has_content(path: Optional[Path]) -> bool:
    # Zero-byte files are dry-run placeholders
    return path is not None and path.is_file() and path.stat().st_size > 0


class AudioSources(BaseModel):
    """Optional audio inputs of the final mux."""

    voiceover: Optional[Path] = Field(default=None, description="Voiceover track")
    music: Optional[Path] = Field(default=None, description="Background music track")

    @classmethod
    def detect(cls, voiceover: Path, music: Path) -> "AudioSources":
        """Keep only the candidate tracks that exist and are non-empty."""
        return cls(
            voiceover=voiceover if _has_content(voiceover) else None,
            music=music if _has_content(music) else None,
        )

    @property
    def mode(self) -> AudioMix:
        if self.voiceover and self.music:
            return AudioMix.BOTH
        if self.voiceover:
            return AudioMix.VOICE_ONLY
        if self.music:
            return AudioMix.MUSIC_ONLY
        return AudioMix.NONE


class RenderContext(BaseModel):
    """Working state of one render run."""

    layout: KitLayout = Field(..., description="Kit being rendered")
    per_scene_seconds: int = Field(..., gt=0, description="Uniform scene duration")
    audio: AudioSources = Field(default_factory=AudioSources, description="Audio tracks present")
    captions: Optional[Path] = Field(default=None, description="Caption track, if any")

    @property
    def audio_mix(self) -> AudioMix:
        return self.audio.mode
