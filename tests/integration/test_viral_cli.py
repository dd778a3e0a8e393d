"""
End-to-end tests for the `viral` command and kit generation.

Backends are never called: dry runs use placeholders and the non-dry
tests patch the OpenAI/ElevenLabs clients and the ffmpeg probe.
"""

import json
import stat
from pathlib import Path
from unittest.mock import patch

import pytest

from viral_video.core.config import Settings, resolve_config
from viral_video.core.exceptions import ConfigurationError, ValidationError
from viral_video.models.schemas import ImageStyle
from viral_video.pipelines.run_full_pipeline import generate_video_kit, main
from viral_video.services.ffmpeg_runner import FFmpegRunner
from viral_video.services.image_client import ImageClient
from viral_video.services.storyboard import parse_storyboard
from viral_video.services.tts_client import TTSClient


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Run every test in an empty working directory with no config leaking in."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    for name in Settings.model_fields:
        monkeypatch.delenv(name.upper(), raising=False)
    monkeypatch.delenv("DRY_RUN", raising=False)
    return tmp_path


PLAN_JSON = {
    "title": "Compound interest",
    "hook": "Time is your best friend.",
    "sections": [
        {"label": "Intro/Context", "sec": 10, "text": "Interest earns interest."},
        {"label": "Point 1", "sec": 14, "text": "Start early."},
        {"label": "Point 2", "sec": 14, "text": "Stay consistent."},
        {"label": "Point 3", "sec": 10, "text": "Avoid high fees."},
        {"label": "Wrap/CTA", "sec": 12, "text": "Follow for more."},
    ],
    "image_prompts": [f"Prompt {i}" for i in range(1, 7)],
    "tts_style": "male, smooth, educational",
    "disclaimer": "Educational only. Not financial advice.",
}


def fake_generate_image(self, prompt, output_path, image_style=ImageStyle.CARTOON):
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(b"png")
    return output_path


def fake_generate_speech(self, text, output_path, voice=None):
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(b"mp3")
    return output_path


def test_dry_run_creates_full_kit(isolated_env, capsys):
    exit_code = main(["create", "--topic", "Dollar-cost averaging", "--female", "--realistic", "--dry-run"])

    assert exit_code == 0
    kit = isolated_env / "build" / "dollar-cost-averaging"
    assert "DRY_RUN complete. Prepared (or validated) directory:" in capsys.readouterr().out

    plan = json.loads((kit / "script.json").read_text(encoding="utf-8"))
    assert plan["ttsStyle"] == "female, smooth, educational"
    assert len(plan["imagePrompts"]) == 6

    rows = parse_storyboard((kit / "storyboard.csv").read_text(encoding="utf-8"))
    assert [row.start for row in rows] == [0, 10, 20, 30, 40, 50]
    assert [row.filename for row in rows] == [f"scene{i:02d}.png" for i in range(1, 7)]

    assert sorted(p.name for p in (kit / "scenes").glob("*.png")) == [f"scene{i:02d}.png" for i in range(1, 7)]
    assert (kit / "audio" / "voiceover.mp3").stat().st_size == 0
    assert (kit / "captions.ass").read_text(encoding="utf-8").startswith("[Script Info]")
    assert (kit / "voiceover.txt").read_text(encoding="utf-8").startswith("Why Dollar-cost averaging matters")

    readme = (kit / "README.md").read_text(encoding="utf-8")
    assert "voice: nova" in readme
    assert "Image style: realistic" in readme
    assert not (kit / "output.mp4").exists()


def test_dry_run_env_with_legacy_flags(isolated_env, monkeypatch):
    monkeypatch.setenv("DRY_RUN", "1")

    exit_code = main(["--topic", "SEC Bitcoin ETF timeline", "--ai-generated"])

    assert exit_code == 0
    readme = (isolated_env / "build" / "sec-bitcoin-etf-timeline" / "README.md").read_text(encoding="utf-8")
    assert "Image style: ai-generated" in readme
    assert "voice: alloy" in readme


def test_dry_run_honours_environment_overrides(isolated_env, monkeypatch):
    monkeypatch.setenv("VIDEO_SEC", "30")
    monkeypatch.setenv("SCENES_COUNT", "3")

    assert main(["create", "--topic", "Short one", "--dry-run", "--output-dir", "kits"]) == 0

    rows = parse_storyboard((isolated_env / "kits" / "short-one" / "storyboard.csv").read_text(encoding="utf-8"))
    assert [(row.start, row.duration) for row in rows] == [(0, 10), (10, 10), (20, 10)]


def test_no_arguments_prints_usage(capsys):
    assert main([]) == 1
    assert "Usage:" in capsys.readouterr().err


def test_missing_topic(capsys):
    assert main(["create", "--dry-run"]) == 1
    err = capsys.readouterr().err
    assert 'Missing required --topic for "create".' in err
    assert "Usage:" in err


def test_missing_api_key_fails_before_writing(isolated_env, capsys):
    assert main(["create", "--topic", "Compound interest"]) == 1
    assert "viral failed:" in capsys.readouterr().err
    assert not (isolated_env / "build").exists()


def test_setup_writes_private_config(isolated_env, capsys):
    exit_code = main(
        ["setup", "--openai-key", "sk-test", "--elevenlabs-key", "el-test", "--voice", "nova", "--video-sec", "45"]
    )

    assert exit_code == 0
    config_file = isolated_env / "config" / "viral-video" / "config.json"
    assert f"Saved configuration to: {config_file}" in capsys.readouterr().out
    assert stat.S_IMODE(config_file.stat().st_mode) == 0o600
    assert json.loads(config_file.read_text(encoding="utf-8")) == {
        "OPENAI_API_KEY": "sk-test",
        "ELEVENLABS_API_KEY": "el-test",
        "TTS_VOICE": "nova",
        "VIDEO_SEC": 45,
    }


def test_setup_requires_openai_key(monkeypatch, capsys):
    monkeypatch.setattr("viral_video.pipelines.run_full_pipeline._prompt_secret", lambda question: "")
    assert main(["setup"]) == 1
    assert "Missing OPENAI_API_KEY" in capsys.readouterr().err


def test_render_missing_kit(capsys):
    assert main(["render", "no/such/kit"]) == 1
    assert "Kit directory not found" in capsys.readouterr().err


def test_render_without_ffmpeg(isolated_env, monkeypatch, capsys):
    monkeypatch.setenv("FFMPEG_BINARY", "viral-test-no-such-ffmpeg")
    assert main(["create", "--topic", "Topic", "--dry-run"]) == 0

    assert main(["render", "build/topic"]) == 1
    assert "not found on PATH" in capsys.readouterr().err


@pytest.fixture
def keyed_settings():
    return resolve_config({"OPENAI_API_KEY": "sk-test"}, {})


@patch.object(TTSClient, "generate_speech", autospec=True, side_effect=fake_generate_speech)
@patch.object(ImageClient, "generate_image", autospec=True, side_effect=fake_generate_image)
@patch("viral_video.services.script_writer.LLMClient")
def test_generate_kit_with_backends(mock_llm, mock_image, mock_speech, keyed_settings, logger, isolated_env):
    mock_llm.return_value.generate_plan_json.return_value = PLAN_JSON

    with patch.object(FFmpegRunner, "is_available", return_value=False):
        kit_dir = generate_video_kit("Compound interest", keyed_settings, logger, gender="male")

    assert kit_dir == Path("build") / "compound-interest"
    assert mock_image.call_count == 6
    prompts = sorted(call.args[1] for call in mock_image.call_args_list)
    assert prompts == [f"Prompt {i}" for i in range(1, 7)]

    narration = mock_speech.call_args.args[1]
    assert narration.startswith("Time is your best friend.\nInterest earns interest.")
    assert narration.endswith("Educational only. Not financial advice.")
    assert (kit_dir / "audio" / "voiceover.mp3").read_bytes() == b"mp3"
    assert (kit_dir / "voiceover.txt").read_text(encoding="utf-8") == narration
    assert not (kit_dir / "output.mp4").exists()


@patch.object(TTSClient, "generate_speech", autospec=True, side_effect=fake_generate_speech)
@patch.object(ImageClient, "generate_image", autospec=True, side_effect=fake_generate_image)
@patch("viral_video.services.script_writer.LLMClient")
def test_generate_kit_renders_when_ffmpeg_available(
    mock_llm, mock_image, mock_speech, keyed_settings, logger, isolated_env
):
    mock_llm.return_value.generate_plan_json.return_value = PLAN_JSON
    music = isolated_env / "bed.mp3"
    music.write_bytes(b"music")

    with patch.object(FFmpegRunner, "is_available", return_value=True), patch(
        "viral_video.pipelines.run_full_pipeline.render_kit"
    ) as mock_render:
        kit_dir = generate_video_kit("Compound interest", keyed_settings, logger, music=music)

    mock_render.assert_called_once_with(kit_dir, keyed_settings, logger, scene_seconds=10)
    assert (kit_dir / "audio" / "music.mp3").read_bytes() == b"music"


def test_generate_kit_rejects_missing_music(keyed_settings, logger, isolated_env):
    with pytest.raises(ValidationError, match="Music file not found"):
        generate_video_kit("Topic", keyed_settings, logger, music=isolated_env / "missing.mp3")


def test_generate_kit_rejects_blank_topic(settings, logger):
    with pytest.raises(ConfigurationError):
        generate_video_kit("  ", settings, logger, dry_run=True)


def test_render_requires_plan(isolated_env, capsys):
    (isolated_env / "loose-folder").mkdir()

    assert main(["render", "loose-folder"]) == 1
    assert "Missing plan file" in capsys.readouterr().err


@patch.object(TTSClient, "generate_speech", autospec=True, side_effect=fake_generate_speech)
@patch.object(ImageClient, "generate_image", autospec=True, side_effect=fake_generate_image)
@patch("viral_video.services.script_writer.LLMClient")
def test_rerun_without_music_drops_previous_track(
    mock_llm, mock_image, mock_speech, keyed_settings, logger, isolated_env
):
    mock_llm.return_value.generate_plan_json.return_value = PLAN_JSON
    music = isolated_env / "bed.mp3"
    music.write_bytes(b"music")

    with patch.object(FFmpegRunner, "is_available", return_value=False):
        kit_dir = generate_video_kit("Compound interest", keyed_settings, logger, music=music)
        assert (kit_dir / "audio" / "music.mp3").exists()

        generate_video_kit("Compound interest", keyed_settings, logger)

    assert not (kit_dir / "audio" / "music.mp3").exists()
