"""Script Writer - builds the video plan (sections, scenes, image prompts) for a topic."""

from typing import Any, Optional

from viral_video.core.config import Settings
from viral_video.core.exceptions import ConfigurationError
from viral_video.models.schemas import Plan, Scene, Section
from viral_video.services.duration_allocator import allocate_section_durations, per_scene_seconds
from viral_video.services.llm_client import LLMClient
from viral_video.utils.text_utils import estimate_spoken_duration

DEFAULT_TTS_STYLE = "male, smooth, educational"

# Placeholder outline used by dry runs
DRY_RUN_SECTIONS = [
    ("Intro/Context", 10, "Intro on: {topic}"),
    ("Point 1", 14, "Point 1 about {topic}"),
    ("Point 2", 14, "Point 2 about {topic}"),
    ("Point 3", 10, "Point 3 about {topic}"),
    ("Wrap/CTA", 12, "Wrap and CTA for {topic}"),
]


def default_image_prompt(topic: str) -> str:
    """Prompt used for scenes the model did not describe."""
    return f'Vertical frame illustrating "{topic}", clean composition, high contrast, 1080x1920.'


def fit_image_prompts(prompts: Any, topic: str, scenes_count: int) -> list[str]:
    """
    Truncate or pad prompts so there is exactly one per scene.

    Prompts keep their scene position; an empty slot gets the default prompt.
    """
    given = prompts[:scenes_count] if isinstance(prompts, list) else []
    fitted = [str(p) if p else default_image_prompt(topic) for p in given]
    while len(fitted) < scenes_count:
        fitted.append(default_image_prompt(topic))
    return fitted


def _as_seconds(value: Any) -> float:
    try:
        return max(0.0, float(value or 0))
    except (TypeError, ValueError):
        return 0.0


def tts_style_for(gender: str) -> str:
    return f"{gender}, smooth, educational"


class ScriptWriter:
    """Turns a topic into a Plan, via the LLM or a placeholder outline."""

    def __init__(self, settings: Settings, logger: Any, llm_client: Optional[LLMClient] = None):
        """
        Initialize script writer.

        Args:
            settings: Application settings
            logger: Logger instance
            llm_client: LLM client (created lazily for real runs)
        """
        self.settings = settings
        self.logger = logger
        self.llm_client = llm_client

    def build_plan(self, topic: str, dry_run: bool = False, gender: Optional[str] = None) -> Plan:
        """
        Build the plan for a topic.

        Section durations are rescaled to ``video_sec``. Every scene gets the
        same rounded share of ``video_sec``, and there is exactly one image
        prompt per scene.

        Args:
            topic: Video topic
            dry_run: Use the placeholder outline instead of calling the LLM
            gender: Optional narrator gender ("male" or "female"), recorded in tts_style

        Returns:
            Plan instance

        Raises:
            ConfigurationError: If the topic is empty
        """
        if not topic or not topic.strip():
            raise ConfigurationError('Missing required "topic"')

        if dry_run:
            plan = self._placeholder_plan(topic)
        else:
            plan = self._llm_plan(topic)

        if gender:
            plan.tts_style = tts_style_for(gender)

        estimated = estimate_spoken_duration(plan.narration_text())
        if estimated > self.settings.video_sec:
            self.logger.warning(
                f"Narration is ~{estimated}s for a {self.settings.video_sec}s video; the voiceover will be cut"
            )

        self.logger.info(
            f"Plan ready: {len(plan.sections)} sections, {len(plan.scenes)} scenes, title: {plan.title}"
        )
        return plan

    def _placeholder_plan(self, topic: str) -> Plan:
        sections = [
            Section(label=label, seconds=sec, text=text.format(topic=topic))
            for label, sec, text in DRY_RUN_SECTIONS
        ]
        self._rescale_sections(sections)
        scenes_count = self.settings.scenes_count
        per_scene = per_scene_seconds(self.settings.video_sec, scenes_count)
        scenes = [
            Scene(index=i + 1, seconds=per_scene, text=sections[min(i, len(sections) - 1)].text)
            for i in range(scenes_count)
        ]
        return Plan(
            title=topic,
            hook=f"Why {topic} matters in {self.settings.video_sec} seconds",
            sections=sections,
            scenes=scenes,
            image_prompts=[
                f"Placeholder scene {i + 1} for {topic}, vertical 1080x1920." for i in range(scenes_count)
            ],
            tts_style=DEFAULT_TTS_STYLE,
            disclaimer="Educational only. Not financial advice.",
        )

    def _llm_plan(self, topic: str) -> Plan:
        if self.llm_client is None:
            self.llm_client = LLMClient(self.settings, self.logger)

        scenes_count = self.settings.scenes_count
        data = self.llm_client.generate_plan_json(topic, scenes_count, self.settings.video_sec)

        raw_sections = data.get("sections") if isinstance(data.get("sections"), list) else []
        sections = [
            Section(
                label=str(s.get("label") or ""),
                seconds=_as_seconds(s.get("sec")),
                text=str(s.get("text") or ""),
            )
            for s in raw_sections
            if isinstance(s, dict)
        ]
        if sections:
            self._rescale_sections(sections)

        title = str(data.get("title") or topic)
        hook = str(data.get("hook") or "")
        per_scene = per_scene_seconds(self.settings.video_sec, scenes_count)

        scenes = []
        idx = 0
        for i in range(scenes_count):
            text = (sections[idx].text if sections else "") or hook or title
            scenes.append(Scene(index=i + 1, seconds=per_scene, text=text))
            idx = min(idx + 1, max(len(sections), 1) - 1)

        return Plan(
            title=title,
            hook=hook,
            sections=sections,
            scenes=scenes,
            image_prompts=fit_image_prompts(data.get("image_prompts"), topic, scenes_count),
            tts_style=str(data.get("tts_style") or DEFAULT_TTS_STYLE),
            disclaimer=str(data.get("disclaimer") or ""),
        )

    def _rescale_sections(self, sections: list[Section]) -> None:
        requested = [s.seconds for s in sections]
        if sum(requested) <= 0:
            # No usable durations: start from an even split of the target
            self.logger.warning("Plan sections carry no durations; splitting the video evenly")
            requested = [self.settings.video_sec / len(sections)] * len(sections)
        durations = allocate_section_durations(requested, self.settings.video_sec)
        for section, seconds in zip(sections, durations):
            section.seconds = seconds
