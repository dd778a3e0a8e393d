"""Tests for layered configuration."""

import json
import stat

import pytest

from viral_video.core.config import (
    GENDER_VOICES,
    config_paths,
    load_user_config,
    resolve_config,
    save_user_config,
)
from viral_video.core.exceptions import ConfigurationError


def test_defaults():
    settings = resolve_config({}, {})

    assert settings.text_model == "gpt-5"
    assert settings.image_model == "gpt-image-1"
    assert settings.tts_model == "gpt-4o-mini-tts"
    assert settings.tts_voice == "alloy"
    assert settings.video_sec == 60
    assert settings.scenes_count == 6
    assert (settings.video_width, settings.video_height, settings.fps) == (1080, 1920, 30)
    assert settings.openai_api_key is None


def test_env_overrides_user_file_and_user_file_overrides_defaults():
    settings = resolve_config(
        {"VIDEO_SEC": "30"},
        {"VIDEO_SEC": 45, "SCENES_COUNT": 5, "TTS_VOICE": "echo"},
    )

    assert settings.video_sec == 30
    assert settings.scenes_count == 5
    assert settings.tts_voice == "echo"


def test_empty_values_fall_through():
    settings = resolve_config({"TEXT_MODEL": ""}, {"TEXT_MODEL": "gpt-4o"})
    assert settings.text_model == "gpt-4o"


def test_explicit_defaults_layer():
    settings = resolve_config({}, {"TTS_MODEL": "tts-1"}, {"tts_voice": "nova", "tts_model": "ignored"})
    assert settings.tts_voice == "nova"
    assert settings.tts_model == "tts-1"


def test_unrelated_env_keys_are_ignored():
    settings = resolve_config({"PATH": "/usr/bin", "HOME": "/root"}, {})
    assert settings.video_sec == 60


@pytest.mark.parametrize("env", [{"VIDEO_SEC": "abc"}, {"VIDEO_SEC": "0"}, {"SCENES_COUNT": "-2"}])
def test_invalid_values_raise_configuration_error(env):
    with pytest.raises(ConfigurationError):
        resolve_config(env, {})


def test_config_paths_follow_xdg(tmp_path):
    config_dir, config_file = config_paths({"XDG_CONFIG_HOME": str(tmp_path)})
    assert config_dir == tmp_path / "viral-video"
    assert config_file == tmp_path / "viral-video" / "config.json"


def test_save_and_load_user_config(tmp_path):
    env = {"XDG_CONFIG_HOME": str(tmp_path)}
    path = save_user_config({"OPENAI_API_KEY": "sk-test", "TTS_VOICE": None, "TEXT_MODEL": ""}, env)

    assert path == tmp_path / "viral-video" / "config.json"
    assert stat.S_IMODE(path.stat().st_mode) == 0o600
    assert json.loads(path.read_text()) == {"OPENAI_API_KEY": "sk-test"}
    assert load_user_config(env) == {"OPENAI_API_KEY": "sk-test"}


def test_load_user_config_missing_file(tmp_path):
    assert load_user_config({"XDG_CONFIG_HOME": str(tmp_path)}) == {}


@pytest.mark.parametrize("content", ["{not json", "[1, 2, 3]", "\"text\""])
def test_load_user_config_unusable_file(tmp_path, content):
    config_file = tmp_path / "viral-video" / "config.json"
    config_file.parent.mkdir(parents=True)
    config_file.write_text(content)

    assert load_user_config({"XDG_CONFIG_HOME": str(tmp_path)}) == {}


def test_user_file_feeds_resolution(tmp_path):
    env = {"XDG_CONFIG_HOME": str(tmp_path)}
    save_user_config({"OPENAI_API_KEY": "sk-file", "SCENES_COUNT": 4}, env)

    settings = resolve_config({}, load_user_config(env))
    assert settings.openai_api_key == "sk-file"
    assert settings.scenes_count == 4


def test_gender_voices():
    assert GENDER_VOICES == {"male": "alloy", "female": "nova"}
