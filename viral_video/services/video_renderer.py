"""Video Renderer - ffmpeg stages that turn scene images and audio into output.mp4."""

import math
from pathlib import Path
from typing import Any, Optional, Sequence

from viral_video.core.config import Settings
from viral_video.core.exceptions import ValidationError
from viral_video.models.schemas import AudioMix, AudioSources, StoryboardRow
from viral_video.services.ffmpeg_runner import FFmpegRunner
from viral_video.utils.parallel_executor import ParallelExecutor, raise_first_error

# Ken Burns zoom: 1.0x at the first frame up to this cap at the last frame
MAX_ZOOM = 1.06

MUSIC_LOUDNORM = "loudnorm=I=-22:TP=-1.5:LRA=11"

# Compressed music, ducked under the voiceover, then halved
DUCKING_FILTER = (
    "[1:a]aformat=channel_layouts=stereo,volume=1.0[vo];"
    "[2:a]aformat=channel_layouts=stereo,compand=gain=-2[bg];"
    "[bg][vo]sidechaincompress=threshold=0.05:ratio=8:attack=5:release=300[ducked];"
    "[ducked]volume=0.5[mix]"
)

AUDIO_CODEC_ARGS = ["-c:a", "aac", "-b:a", "192k", "-shortest"]


def _escape(value: str, specials: str) -> str:
    out = []
    for ch in value:
        if ch == "\\" or ch in specials:
            out.append("\\")
        out.append(ch)
    return "".join(out)


def escape_filter_path(path: Path) -> str:
    """Escape a path for use as a filter option inside a filtergraph."""
    # Filter option level first, then filtergraph level
    return _escape(_escape(str(path), "':"), "'[],;")


def escape_concat_path(path: Path) -> str:
    """Quote a path for a concat demuxer ``file`` directive."""
    return "'" + str(path).replace("'", "'\\''") + "'"


class VideoRenderer:
    """Renders segments, concatenates them, burns captions and mixes audio."""

    def __init__(self, settings: Settings, logger: Any, runner: Optional[FFmpegRunner] = None):
        """
        Initialize video renderer.

        Args:
            settings: Application settings
            logger: Logger instance
            runner: ffmpeg runner (defaults to one built from settings)
        """
        self.settings = settings
        self.logger = logger
        self.width = settings.video_width
        self.height = settings.video_height
        self.fps = settings.fps
        self.runner = runner or FFmpegRunner(settings, logger)
        self.parallel_executor = ParallelExecutor(settings, logger)

    # ------------------------------------------------------------------
    # Scene segments
    # ------------------------------------------------------------------

    def zoom_increment(self, frames: int) -> float:
        """
        Per-frame zoom step that reaches MAX_ZOOM exactly on the last frame.

        Rounded down at 1e-8 so the cap is never hit before the final frame.
        """
        return math.floor((MAX_ZOOM - 1.0) / frames * 1e8) / 1e8

    def segment_args(self, image: Path, duration: int, output: Path) -> list[str]:
        """ffmpeg arguments for one still-image segment of ``duration * fps`` frames."""
        frames = duration * self.fps
        increment = self.zoom_increment(frames)
        video_filter = (
            f"scale={self.width}:{self.height},"
            f"zoompan=z='min(zoom+{increment:.8f},{MAX_ZOOM})'"
            ":x='iw/2-(iw/zoom/2)':y='ih/2-(ih/zoom/2)'"
            f":d={frames}:s={self.width}x{self.height}:fps={self.fps},"
            "format=yuv420p"
        )
        return [
            "-i", str(image),
            "-vf", video_filter,
            "-frames:v", str(frames),
            "-r", str(self.fps),
            "-c:v", "libx264",
            "-pix_fmt", "yuv420p",
            "-an",
            str(output),
        ]

    def render_segment(self, image: Path, duration: int, output: Path) -> Path:
        """
        Render one scene image into a silent zooming segment.

        Raises:
            ValidationError: If the image does not exist
            ExternalToolError: If ffmpeg fails
        """
        if not image.is_file():
            raise ValidationError(f"Missing scene image: {image}", {"filename": image.name})
        if duration <= 0:
            raise ValidationError(f"Segment duration must be positive for {image.name}", {"duration": duration})

        output.parent.mkdir(parents=True, exist_ok=True)
        self.runner.run(f"segment {image.name}", self.segment_args(image, duration, output))
        return output

    def render_segments(
        self,
        rows: Sequence[StoryboardRow],
        scenes_dir: Path,
        segments_dir: Path,
    ) -> list[Path]:
        """
        Render every storyboard row into build/segs/<scene>.mp4.

        All scene images are checked before any encoding starts. Segments may
        be encoded concurrently; the call returns only after every segment
        has finished, and re-raises the first failure in storyboard order.

        Returns:
            Segment paths in storyboard order
        """
        missing = [row.filename for row in rows if not (scenes_dir / row.filename).is_file()]
        if missing:
            raise ValidationError(
                f"Missing scene image(s) in {scenes_dir}: {', '.join(missing)}",
                {"missing": missing},
            )

        segments_dir.mkdir(parents=True, exist_ok=True)
        self.logger.info(f"Rendering {len(rows)} scene segments at {self.fps}fps ({self.width}x{self.height})")

        def create_segment_task(row: StoryboardRow):
            def render():
                self.logger.info(
                    f"  scene={row.filename} start={row.start}s duration={row.duration}s cue={row.cue}"
                )
                return self.render_segment(
                    scenes_dir / row.filename, row.duration, segments_dir / f"{row.stem}.mp4"
                )
            return render

        results = self.parallel_executor.execute_batch(
            [create_segment_task(row) for row in rows],
            task_names=[f"segment {row.stem}" for row in rows],
            max_workers=self.settings.max_parallel_segments,
        )
        return raise_first_error(results)

    # ------------------------------------------------------------------
    # Concatenation
    # ------------------------------------------------------------------

    def write_concat_manifest(self, segments: Sequence[Path], manifest: Path) -> Path:
        """Write the concat demuxer list, one ``file`` line per segment."""
        manifest.parent.mkdir(parents=True, exist_ok=True)
        lines = [f"file {escape_concat_path(segment.resolve())}" for segment in segments]
        manifest.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return manifest

    def concat_segments(self, segments: Sequence[Path], manifest: Path, output: Path) -> Path:
        """
        Join segments into one silent video by stream copy.

        Segment names must sort in the same order they are given, which
        zero-padded scene numbering guarantees.

        Raises:
            ValidationError: If a segment is missing or the order is ambiguous
            ExternalToolError: If ffmpeg fails
        """
        if not segments:
            raise ValidationError("No segments to concatenate")
        missing = [str(segment) for segment in segments if not segment.is_file()]
        if missing:
            raise ValidationError(f"Missing segment(s): {', '.join(missing)}", {"missing": missing})
        names = [segment.name for segment in segments]
        if sorted(names) != names:
            raise ValidationError(
                "Segment filenames do not sort in scene order; use zero-padded scene numbers",
                {"segments": names},
            )

        self.write_concat_manifest(segments, manifest)
        self.logger.info(f"Concatenating {len(segments)} segments...")
        self.runner.run(
            "concat",
            ["-f", "concat", "-safe", "0", "-i", str(manifest), "-c", "copy", str(output)],
        )
        return output

    # ------------------------------------------------------------------
    # Captions
    # ------------------------------------------------------------------

    def burn_captions(self, video: Path, captions: Path, output: Path) -> Path:
        """Burn the ASS caption track into every frame."""
        if not captions.is_file():
            raise ValidationError(f"Missing caption track: {captions}")
        self.logger.info("Burning captions...")
        self.runner.run(
            "burn captions",
            ["-i", str(video), "-vf", f"ass={escape_filter_path(captions)}", "-c:a", "copy", str(output)],
        )
        return output

    # ------------------------------------------------------------------
    # Audio
    # ------------------------------------------------------------------

    def normalize_music(self, music: Path, output: Path) -> Path:
        """Loudness-normalize background music (about -22 LUFS)."""
        self.logger.info("Normalizing music loudness...")
        output.parent.mkdir(parents=True, exist_ok=True)
        self.runner.run("normalize music", ["-i", str(music), "-af", MUSIC_LOUDNORM, str(output)])
        return output

    def _video_codec_args(self) -> list[str]:
        return [
            "-c:v", "libx264",
            "-profile:v", "high",
            "-level", "4.1",
            "-pix_fmt", "yuv420p",
            "-r", str(self.fps),
        ]

    def mix_audio_args(self, video: Path, sources: AudioSources, output: Path) -> list[str]:
        """ffmpeg arguments for the final mux, chosen by which tracks are present."""
        mode = sources.mode
        if mode == AudioMix.BOTH:
            return [
                "-i", str(video),
                "-i", str(sources.voiceover),
                "-i", str(sources.music),
                "-filter_complex", DUCKING_FILTER,
                "-map", "0:v",
                "-map", "[mix]",
                *self._video_codec_args(),
                *AUDIO_CODEC_ARGS,
                str(output),
            ]
        if mode in (AudioMix.VOICE_ONLY, AudioMix.MUSIC_ONLY):
            track = sources.voiceover if mode == AudioMix.VOICE_ONLY else sources.music
            return [
                "-i", str(video),
                "-i", str(track),
                "-map", "0:v",
                "-map", "1:a",
                *self._video_codec_args(),
                *AUDIO_CODEC_ARGS,
                str(output),
            ]
        return ["-i", str(video), "-map", "0:v", *self._video_codec_args(), "-an", str(output)]

    def mix_audio(self, video: Path, sources: AudioSources, output: Path) -> Path:
        """
        Produce the final muxed video.

        Voiceover and music together get the ducking chain; a single track is
        muxed directly; with neither the video is exported silent.
        """
        messages = {
            AudioMix.BOTH: "Mixing voiceover with ducked music...",
            AudioMix.VOICE_ONLY: "Muxing voiceover only...",
            AudioMix.MUSIC_ONLY: "Muxing music only...",
            AudioMix.NONE: "No audio sources found. Exporting silent video...",
        }
        self.logger.info(messages[sources.mode])
        self.runner.run("mix audio", self.mix_audio_args(video, sources, output))
        return output
