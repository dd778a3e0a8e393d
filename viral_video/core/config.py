"""Application configuration using pydantic-settings."""

import json
import os
from pathlib import Path
from typing import Any, Mapping, Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic import ValidationError as PydanticValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from viral_video.core.exceptions import ConfigurationError

CONFIG_DIR_NAME = "viral-video"
CONFIG_FILE_NAME = "config.json"

# Voice selected by the --male / --female flags
GENDER_VOICES = {
    "male": "alloy",
    "female": "nova",
}


class Settings(BaseSettings):
    """
    Application settings.

    Values can come from environment variables, a .env file, or the user
    config file written by ``viral setup``. Use ``resolve_config`` to build
    a Settings instance from explicit layers.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================================================
    # Application Settings
    # ========================================================================
    app_name: str = Field(default="Viral Video Kit", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    log_level: str = Field(default="INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR)")
    log_file: Optional[str] = Field(default=None, description="Optional path of a rotating log file")

    # ========================================================================
    # API Keys
    # ========================================================================
    openai_api_key: Optional[str] = Field(default=None, description="OpenAI API key")
    elevenlabs_api_key: Optional[str] = Field(default=None, description="ElevenLabs API key")
    elevenlabs_voice_id: Optional[str] = Field(
        default=None, description="ElevenLabs voice ID (ElevenLabs TTS is used only when key and voice are set)"
    )

    # ========================================================================
    # Generative Models
    # ========================================================================
    text_model: str = Field(default="gpt-5", description="Chat model used to write the script")
    image_model: str = Field(default="gpt-image-1", description="Image model used for scene frames")
    tts_model: str = Field(default="gpt-4o-mini-tts", description="OpenAI speech model")
    tts_voice: str = Field(default="alloy", description="Voice name passed to the speech backend")

    # ========================================================================
    # Video Layout
    # ========================================================================
    video_sec: int = Field(default=60, gt=0, description="Target video duration in seconds")
    scenes_count: int = Field(default=6, gt=0, description="Number of scenes (one image each)")
    video_width: int = Field(default=1080, gt=0, description="Canvas width in pixels")
    video_height: int = Field(default=1920, gt=0, description="Canvas height in pixels")
    fps: int = Field(default=30, gt=0, description="Frame rate of every rendered segment")

    # ========================================================================
    # Rendering
    # ========================================================================
    output_dir: str = Field(default="build", description="Directory that receives one kit per topic")
    ffmpeg_binary: str = Field(default="ffmpeg", description="ffmpeg executable name or path")
    max_parallel_segments: int = Field(
        default=4, ge=1, description="Scene segments encoded concurrently (1 renders sequentially)"
    )
    max_parallel_api_calls: int = Field(
        default=3, ge=1, description="Image generation calls issued concurrently"
    )


def config_paths(env: Optional[Mapping[str, str]] = None) -> tuple[Path, Path]:
    """
    Locate the user config directory and file.

    Args:
        env: Environment mapping (defaults to os.environ)

    Returns:
        Tuple of (config directory, config file)
    """
    env = os.environ if env is None else env
    config_root = env.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    config_dir = Path(config_root) / CONFIG_DIR_NAME
    return config_dir, config_dir / CONFIG_FILE_NAME


def load_user_config(env: Optional[Mapping[str, str]] = None) -> dict[str, Any]:
    """Read the user config file. Missing or unreadable files yield {}."""
    _, config_file = config_paths(env)
    try:
        with open(config_file, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError):
        return {}
    return data if isinstance(data, dict) else {}


def save_user_config(values: Mapping[str, Any], env: Optional[Mapping[str, str]] = None) -> Path:
    """
    Persist config values (upper-case keys) to the user config file.

    The file is created with owner-only permissions since it holds API keys.

    Returns:
        Path of the written file
    """
    config_dir, config_file = config_paths(env)
    config_dir.mkdir(parents=True, exist_ok=True)
    payload = {k: v for k, v in values.items() if v is not None and v != ""}
    fd = os.open(config_file, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)
    os.chmod(config_file, 0o600)
    return config_file


def resolve_config(
    env: Mapping[str, str],
    user_config: Mapping[str, Any],
    defaults: Optional[Mapping[str, Any]] = None,
) -> Settings:
    """
    Resolve settings from explicit layers: env > user file > defaults.

    Environment and user-file keys are the upper-cased field names
    (e.g. VIDEO_SEC). Empty values fall through to the next layer, and
    fields absent from every layer keep their declared default. Nothing
    is read from the process environment here.

    Raises:
        ConfigurationError: If a resolved value fails validation
    """
    defaults = defaults or {}
    values: dict[str, Any] = {}
    for name in Settings.model_fields:
        key = name.upper()
        for layer_value in (env.get(key), user_config.get(key), defaults.get(name)):
            if layer_value is not None and layer_value != "":
                values[name] = layer_value
                break

    try:
        # model_validate skips the BaseSettings sources, keeping this pure
        return Settings.model_validate(values)
    except PydanticValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise ConfigurationError(f"Invalid configuration value(s): {fields}", {"errors": e.error_count()}) from e


def load_settings() -> Settings:
    """Load settings for a CLI run (.env is merged into the environment first)."""
    load_dotenv()
    return resolve_config(os.environ, load_user_config())
