"""Full pipeline orchestrator - topic → video kit → output.mp4, plus the `viral` CLI."""

import argparse
import getpass
import os
import shutil
import sys
import time
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence, Union

from viral_video.core.config import (
    GENDER_VOICES,
    Settings,
    load_settings,
    save_user_config,
)
from viral_video.core.exceptions import ConfigurationError, ExternalToolError, ValidationError, ViralVideoError
from viral_video.core.logging_config import get_logger, setup_logging
from viral_video.models.schemas import ImageStyle, KitLayout, Plan
from viral_video.pipelines.render_pipeline import RenderPipeline
from viral_video.services.caption_compiler import split_for_captions, to_ass
from viral_video.services.duration_allocator import per_scene_seconds
from viral_video.services.ffmpeg_runner import FFmpegRunner
from viral_video.services.image_client import ImageClient
from viral_video.services.script_writer import ScriptWriter
from viral_video.services.storyboard import to_storyboard
from viral_video.services.tts_client import TTSClient
from viral_video.storage.repository import KitRepository
from viral_video.utils.error_handler import format_error_message, get_fallback_suggestion
from viral_video.utils.io_utils import create_kit_dir
from viral_video.utils.parallel_executor import ParallelExecutor, raise_first_error

USAGE = """Usage:
  viral <command> [options]

Commands:
  setup                           Configure API keys and defaults (writes ~/.config/viral-video/config.json)
  create --topic "..."            Generate a vertical video kit
  render KIT_DIR                  Render output.mp4 from an existing kit

Create options:
  --topic "..."                   Topic for the video (required)
  --male | --female               TTS voice gender override
  --cartoon | --realistic | --ai-generated   Image style (default: cartoon)
  --music PATH                    Background music to mix under the voiceover
  --dry-run                       Skip external APIs and ffmpeg; validate flow only

Setup options (can be used non-interactively):
  --openai-key KEY
  --elevenlabs-key KEY
  --elevenlabs-voice-id ID
  --text-model NAME
  --image-model NAME
  --tts-model NAME
  --voice NAME
  --video-sec N
  --scenes-count N

Environment variables override config values:
  OPENAI_API_KEY, ELEVENLABS_API_KEY, ELEVENLABS_VOICE_ID, TEXT_MODEL, IMAGE_MODEL,
  TTS_MODEL, TTS_VOICE, VIDEO_SEC, SCENES_COUNT

Examples:
  viral setup
  viral setup --openai-key sk-... --voice nova --video-sec 60
  viral create --topic "Dollar-cost averaging" --female --realistic
  DRY_RUN=1 viral create --topic "SEC Bitcoin ETF timeline" --ai-generated
  viral render build/dollar-cost-averaging
"""


def is_dry_run_env(env: Mapping[str, str]) -> bool:
    """DRY_RUN=1 or DRY_RUN=true enables dry-run mode."""
    return env.get("DRY_RUN", "").strip().lower() in ("1", "true")


def generate_scene_images(
    plan: Plan,
    layout: KitLayout,
    settings: Settings,
    logger: Any,
    image_style: ImageStyle,
    dry_run: bool,
) -> list[Path]:
    """
    Produce one PNG per scene (placeholders in dry runs).

    Images are requested concurrently, up to ``max_parallel_api_calls`` at a
    time, and this returns only after every request has finished.

    Returns:
        Scene image paths in scene order
    """
    image_client = ImageClient(settings, logger)
    scene_paths = [layout.scene_image(scene.index) for scene in plan.scenes]

    if dry_run:
        for scene, path in zip(plan.scenes, scene_paths):
            image_client.create_placeholder_image(path, label=f"Scene {scene.index}")
        return scene_paths

    def create_image_task(prompt: str, path: Path):
        return lambda: image_client.generate_image(prompt, path, image_style)

    executor = ParallelExecutor(settings, logger)
    results = executor.execute_batch(
        [create_image_task(prompt, path) for prompt, path in zip(plan.image_prompts, scene_paths)],
        task_names=[f"image {path.name}" for path in scene_paths],
        max_workers=settings.max_parallel_api_calls,
    )
    return raise_first_error(results)


def render_kit(kit_dir: Union[str, Path], settings: Settings, logger: Any, scene_seconds: Optional[int] = None) -> Path:
    """
    Render output.mp4 for an existing kit directory.

    Raises:
        ValidationError: If the directory is not a kit or its script.json is missing or malformed
        ExternalToolError: If ffmpeg is not available
        PipelineStageError: If a render stage fails
    """
    layout = KitLayout(kit_dir=Path(kit_dir))
    if not layout.kit_dir.is_dir():
        raise ValidationError(f"Kit directory not found: {layout.kit_dir}")

    plan = KitRepository(layout, logger).load_plan()
    logger.info(f"Rendering \"{plan.title}\" ({len(plan.scenes)} planned scenes)")

    runner = FFmpegRunner(settings, logger)
    if not runner.is_available():
        raise ExternalToolError("probe", f"{settings.ffmpeg_binary} not found on PATH")

    pipeline = RenderPipeline(settings, logger)
    context = pipeline.build_context(layout, scene_seconds)
    return pipeline.run(context)


def generate_video_kit(
    topic: str,
    settings: Settings,
    logger: Any,
    dry_run: bool = False,
    gender: Optional[str] = None,
    image_style: ImageStyle = ImageStyle.CARTOON,
    music: Optional[Path] = None,
    output_root: Optional[Path] = None,
) -> Path:
    """
    Generate a complete video kit for a topic, rendering it when possible.

    Args:
        topic: Video topic
        settings: App settings
        logger: Logger instance
        dry_run: Write placeholder assets without calling any backend or ffmpeg
        gender: Optional narrator gender ("male" or "female")
        image_style: Visual style of the scene images
        music: Optional background music file copied into the kit
        output_root: Directory that receives the kit (defaults to settings.output_dir)

    Returns:
        Path to the kit directory
    """
    if not topic or not topic.strip():
        raise ConfigurationError('Missing required "topic"')
    if gender:
        settings = settings.model_copy(update={"tts_voice": GENDER_VOICES[gender]})
    if not dry_run and not settings.openai_api_key:
        raise ConfigurationError("Missing OPENAI_API_KEY. Set environment variable or run 'viral setup'.")
    if music is not None and not music.is_file():
        raise ValidationError(f"Music file not found: {music}")

    start_time = time.time()
    layout = create_kit_dir(output_root or settings.output_dir, topic)
    repository = KitRepository(layout, logger)
    logger.info("=" * 60)
    logger.info(f"Creating video kit: {layout.kit_dir}")
    logger.info(f"Dry run: {dry_run}, voice: {settings.tts_voice}, image style: {image_style.value}")
    logger.info("=" * 60)

    # Step 1: Plan
    logger.info("Step 1: Writing script plan...")
    plan = ScriptWriter(settings, logger).build_plan(topic, dry_run=dry_run, gender=gender)
    narration = plan.narration_text()
    repository.save_plan(plan)
    repository.save_voiceover_text(narration)

    per_scene = per_scene_seconds(settings.video_sec, settings.scenes_count)
    if per_scene * settings.scenes_count != settings.video_sec:
        logger.warning(
            f"{settings.scenes_count} scenes x {per_scene}s = {per_scene * settings.scenes_count}s, "
            f"not the configured {settings.video_sec}s"
        )

    # Step 2: Scene images
    logger.info(f"Step 2: Generating {len(plan.scenes)} scene images...")
    scene_files = generate_scene_images(plan, layout, settings, logger, image_style, dry_run)

    # Step 3: Voiceover
    logger.info("Step 3: Synthesizing voiceover...")
    tts_client = TTSClient(settings, logger)
    if dry_run:
        tts_client.create_placeholder(layout.voiceover_mp3)
    else:
        tts_client.generate_speech(narration, layout.voiceover_mp3)

    if music is not None:
        shutil.copyfile(music, layout.music_mp3)
        logger.info(f"Copied background music to {layout.music_mp3}")
    elif layout.music_mp3.exists():
        layout.music_mp3.unlink()
        logger.info(f"Removed background music left by a previous run: {layout.music_mp3}")

    # Step 4: Captions, storyboard and README
    logger.info("Step 4: Writing captions and storyboard...")
    cues = split_for_captions(narration, settings.video_sec)
    repository.save_captions(to_ass(cues, settings.video_width, settings.video_height))
    repository.save_storyboard(to_storyboard(scene_files, per_scene))
    repository.save_readme(
        topic=topic,
        scenes_count=settings.scenes_count,
        voice=settings.tts_voice,
        video_sec=settings.video_sec,
        per_scene=per_scene,
        image_style=image_style.value,
    )

    # Step 5: Render
    if not dry_run:
        if FFmpegRunner(settings, logger).is_available():
            logger.info("Step 5: Rendering video...")
            render_kit(layout.kit_dir, settings, logger, scene_seconds=per_scene)
        else:
            logger.warning(f"⚠️ ffmpeg not found. Assets are ready in: {layout.kit_dir}")

    logger.info(f"✅ Kit complete in {time.time() - start_time:.2f}s: {layout.kit_dir}")
    return layout.kit_dir


# ============================================================================
# CLI
# ============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="viral",
        description="Viral Video Kit - vertical video kits from a single topic",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        usage=argparse.SUPPRESS,
        epilog=USAGE,
    )
    subparsers = parser.add_subparsers(dest="command")

    create = subparsers.add_parser("create", help="Generate a video kit")
    create.add_argument("--topic", type=str, default=None, help="Topic for the video")
    create.add_argument("--male", dest="gender", action="store_const", const="male", help="Male voice")
    create.add_argument("--female", dest="gender", action="store_const", const="female", help="Female voice")
    for style in ImageStyle:
        create.add_argument(
            f"--{style.value}",
            dest="style",
            action="store_const",
            const=style.value,
            help=f"{style.value} image style",
        )
    create.add_argument("--music", type=Path, default=None, help="Background music file (mp3)")
    create.add_argument("--dry-run", action="store_true", help="Skip external APIs and ffmpeg")
    create.add_argument("--output-dir", type=Path, default=None, help="Directory that receives the kit")

    render = subparsers.add_parser("render", help="Render output.mp4 from an existing kit")
    render.add_argument("kit_dir", type=Path, help="Kit directory (e.g. build/my-topic)")

    setup = subparsers.add_parser("setup", help="Configure API keys and defaults")
    setup.add_argument("--openai-key", default=None)
    setup.add_argument("--elevenlabs-key", default=None)
    setup.add_argument("--elevenlabs-voice-id", default=None)
    setup.add_argument("--text-model", default=None)
    setup.add_argument("--image-model", default=None)
    setup.add_argument("--tts-model", default=None)
    setup.add_argument("--voice", default=None)
    setup.add_argument("--video-sec", type=int, default=None)
    setup.add_argument("--scenes-count", type=int, default=None)

    return parser


def _prompt_secret(question: str) -> str:
    if not sys.stdin.isatty():
        return ""
    return getpass.getpass(question).strip()


def setup_command(args: argparse.Namespace, env: Optional[Mapping[str, str]] = None) -> int:
    """Write the user config file from flags (prompting for keys on a TTY)."""
    openai_key = (args.openai_key or "").strip() or _prompt_secret("Enter OPENAI_API_KEY: ")
    if not openai_key:
        print("Missing OPENAI_API_KEY. Provide via --openai-key or interactive prompt.", file=sys.stderr)
        return 1

    elevenlabs_key = (args.elevenlabs_key or "").strip() or _prompt_secret(
        "Enter ELEVENLABS_API_KEY (optional, press Enter to skip): "
    )

    values = {
        "OPENAI_API_KEY": openai_key,
        "ELEVENLABS_API_KEY": elevenlabs_key,
        "ELEVENLABS_VOICE_ID": args.elevenlabs_voice_id,
        "TEXT_MODEL": args.text_model,
        "IMAGE_MODEL": args.image_model,
        "TTS_MODEL": args.tts_model,
        "TTS_VOICE": args.voice,
        "VIDEO_SEC": args.video_sec,
        "SCENES_COUNT": args.scenes_count,
    }
    config_file = save_user_config(values, env)
    print(f"Saved configuration to: {config_file}")
    return 0


def _report_failure(logger: Any, operation: str, error: ViralVideoError, context: Optional[dict] = None) -> int:
    logger.error(format_error_message(operation, error, context, get_fallback_suggestion(error)))
    print(f"viral failed: {error}", file=sys.stderr)
    return 1


def create_command(args: argparse.Namespace, env: Mapping[str, str]) -> int:
    if not args.topic:
        print('Missing required --topic for "create".', file=sys.stderr)
        print(USAGE, file=sys.stderr)
        return 1

    dry_run = args.dry_run or is_dry_run_env(env)
    logger = get_logger(__name__, topic=args.topic)
    try:
        settings = load_settings()
        setup_logging(log_level=settings.log_level, log_file=settings.log_file, topic=args.topic)
        kit_dir = generate_video_kit(
            args.topic,
            settings,
            logger,
            dry_run=dry_run,
            gender=args.gender,
            image_style=ImageStyle(args.style or ImageStyle.CARTOON.value),
            music=args.music,
            output_root=args.output_dir,
        )
    except ViralVideoError as e:
        return _report_failure(logger, "Creating video kit", e, {"topic": args.topic})
    except OSError as e:
        logger.error(f"Creating video kit failed with an I/O error: {e}")
        print(f"viral failed: {e}", file=sys.stderr)
        return 1

    if dry_run:
        print(f"DRY_RUN complete. Prepared (or validated) directory: {kit_dir}")
    else:
        print(f"Kit ready: {kit_dir}")
    return 0


def render_command(args: argparse.Namespace) -> int:
    logger = get_logger(__name__, kit=str(args.kit_dir))
    try:
        settings = load_settings()
        setup_logging(log_level=settings.log_level, log_file=settings.log_file, kit=str(args.kit_dir))
        output = render_kit(args.kit_dir, settings, logger)
    except ViralVideoError as e:
        return _report_failure(logger, "Rendering video kit", e, {"kit": args.kit_dir})
    except OSError as e:
        logger.error(f"Rendering video kit failed with an I/O error: {e}")
        print(f"viral failed: {e}", file=sys.stderr)
        return 1
    print(f"Rendered {output}")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entrypoint for the `viral` command."""
    argv = list(sys.argv[1:] if argv is None else argv)

    # Flags without a subcommand are a legacy `create` invocation
    if argv and argv[0].startswith("--") and argv[0] not in ("-h", "--help"):
        argv = ["create", *argv]
    if not argv:
        print(USAGE, file=sys.stderr)
        return 1

    args = build_parser().parse_args(argv)
    if args.command == "setup":
        return setup_command(args)
    if args.command == "create":
        return create_command(args, os.environ)
    if args.command == "render":
        return render_command(args)

    print(USAGE, file=sys.stderr)
    return 1


if __name__ == "__main__":
    sys.exit(main())
