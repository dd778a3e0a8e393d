"""Pipeline orchestrators for the viral video kit generator."""

from viral_video.pipelines.render_pipeline import RenderPipeline
from viral_video.pipelines.run_full_pipeline import generate_video_kit, main, render_kit

__all__ = ["RenderPipeline", "generate_video_kit", "main", "render_kit"]
