"""FFmpeg Runner - launches the external encoder and waits for it to finish."""

import shutil
import subprocess
from typing import Any, Sequence

from viral_video.core.config import Settings
from viral_video.core.exceptions import ExternalToolError

STDERR_TAIL_LINES = 20


class FFmpegRunner:
    """Runs one ffmpeg invocation per call; each call either returns or raises once."""

    def __init__(self, settings: Settings, logger: Any):
        """
        Initialize the runner.

        Args:
            settings: Application settings
            logger: Logger instance
        """
        self.settings = settings
        self.logger = logger
        self.binary = getattr(settings, "ffmpeg_binary", "ffmpeg")

    def is_available(self) -> bool:
        """Return True if ``ffmpeg -version`` can be launched and exits 0."""
        if shutil.which(self.binary) is None:
            return False
        try:
            result = subprocess.run([self.binary, "-version"], capture_output=True, text=True)
        except OSError:
            return False
        return result.returncode == 0

    def build_command(self, args: Sequence[str]) -> list[str]:
        """Prefix args with the binary and the non-interactive overwrite flags."""
        return [self.binary, "-nostdin", "-y", *[str(a) for a in args]]

    def run(self, stage: str, args: Sequence[str]) -> None:
        """
        Run ffmpeg with the given arguments and wait for it.

        Args:
            stage: Pipeline stage name (used in logs and errors)
            args: ffmpeg arguments, without the binary

        Raises:
            ExternalToolError: If ffmpeg cannot be launched or exits non-zero
        """
        cmd = self.build_command(args)
        self.logger.debug(f"[{stage}] Running: {' '.join(cmd)}")

        try:
            result = subprocess.run(cmd, capture_output=True, text=True)
        except OSError as e:
            raise ExternalToolError(stage, f"could not launch {self.binary}: {e}", command=cmd) from e

        if result.returncode != 0:
            tail = "\n".join((result.stderr or "").strip().splitlines()[-STDERR_TAIL_LINES:])
            self.logger.error(f"[{stage}] ffmpeg exited with {result.returncode}:\n{tail}")
            raise ExternalToolError(
                stage,
                f"exit status {result.returncode}",
                command=cmd,
                returncode=result.returncode,
                stderr_tail=tail,
            )
