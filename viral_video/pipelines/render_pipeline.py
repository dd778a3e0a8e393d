"""Render pipeline orchestrator - storyboard + assets → output.mp4."""

from pathlib import Path
from typing import Any, Callable, Optional, TypeVar

from viral_video.core.config import Settings
from viral_video.core.exceptions import PipelineStageError, ViralVideoError
from viral_video.models.schemas import AudioSources, KitLayout, RenderContext
from viral_video.services.duration_allocator import per_scene_seconds
from viral_video.services.video_renderer import VideoRenderer
from viral_video.storage.repository import KitRepository

T = TypeVar("T")

STAGE_STORYBOARD = "parse storyboard"
STAGE_SEGMENTS = "render segments"
STAGE_CONCAT = "concat segments"
STAGE_CAPTIONS = "burn captions"
STAGE_MUSIC = "normalize music"
STAGE_MIX = "mix audio"


class RenderPipeline:
    """
    Drives the render stages in strict order.

    Any stage failure aborts the run with a PipelineStageError naming the
    stage. Intermediate files already written under build/ are left in
    place, and nothing is retried.
    """

    def __init__(self, settings: Settings, logger: Any, renderer: Optional[VideoRenderer] = None):
        """
        Initialize the render pipeline.

        Args:
            settings: Application settings
            logger: Logger instance
            renderer: Stage implementation (defaults to an ffmpeg-backed VideoRenderer)
        """
        self.settings = settings
        self.logger = logger
        self.renderer = renderer or VideoRenderer(settings, logger)

    def build_context(self, layout: KitLayout, scene_seconds: Optional[int] = None) -> RenderContext:
        """
        Inspect a kit once and record which optional assets it has.

        Args:
            layout: Kit to render
            scene_seconds: Uniform scene duration (derived from settings if omitted)

        Returns:
            RenderContext for a single run
        """
        if scene_seconds is None:
            scene_seconds = per_scene_seconds(self.settings.video_sec, self.settings.scenes_count)
        return RenderContext(
            layout=layout,
            per_scene_seconds=scene_seconds,
            audio=AudioSources.detect(layout.voiceover_mp3, layout.music_mp3),
            captions=layout.captions_ass if layout.captions_ass.is_file() else None,
        )

    def _stage(self, name: str, action: Callable[[], T]) -> T:
        stage_logger = self.logger.bind(stage=name)
        stage_logger.info(f"▶ Stage: {name}")
        try:
            return action()
        except ViralVideoError as e:
            stage_logger.error(f"Stage '{name}' failed: {e}")
            raise PipelineStageError(name, e) from e
        except OSError as e:
            stage_logger.error(f"Stage '{name}' failed with an I/O error: {e}")
            raise PipelineStageError(name, e) from e

    def run(self, context: RenderContext) -> Path:
        """
        Render the kit described by ``context``.

        Returns:
            Path to output.mp4

        Raises:
            PipelineStageError: If any stage fails
        """
        layout = context.layout
        self.logger.info("=" * 60)
        self.logger.info(f"Rendering kit: {layout.kit_dir}")
        self.logger.info(f"Audio: {context.audio_mix.value}, captions: {'yes' if context.captions else 'no'}")
        self.logger.info("=" * 60)

        rows = self._stage(STAGE_STORYBOARD, KitRepository(layout, self.logger).load_storyboard)
        if any(row.duration != context.per_scene_seconds for row in rows):
            self.logger.warning(
                f"Storyboard durations differ from the configured {context.per_scene_seconds}s per scene; "
                "using the storyboard"
            )

        segments = self._stage(
            STAGE_SEGMENTS,
            lambda: self.renderer.render_segments(rows, layout.scenes_dir, layout.segments_dir),
        )
        video = self._stage(
            STAGE_CONCAT,
            lambda: self.renderer.concat_segments(segments, layout.concat_txt, layout.video_nocaptions),
        )

        if context.captions:
            captions = context.captions
            video = self._stage(
                STAGE_CAPTIONS,
                lambda: self.renderer.burn_captions(video, captions, layout.video_captions),
            )
        else:
            self.logger.info("No caption track; skipping caption burn")

        sources = context.audio
        if sources.music:
            music = sources.music
            normalized = self._stage(
                STAGE_MUSIC,
                lambda: self.renderer.normalize_music(music, layout.music_norm),
            )
            sources = AudioSources(voiceover=sources.voiceover, music=normalized)

        final_video = video
        output = self._stage(
            STAGE_MIX,
            lambda: self.renderer.mix_audio(final_video, sources, layout.output_mp4),
        )

        self.logger.info(f"✅ Rendered {output}")
        return output
