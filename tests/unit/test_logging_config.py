"""Tests for logging configuration."""

from viral_video.core.logging_config import get_logger, setup_logging


def test_log_file_receives_bound_context(tmp_path):
    log_file = tmp_path / "logs" / "viral.log"
    try:
        setup_logging(log_level="debug", log_file=log_file)
        get_logger("tests", topic="Compound interest").info("kit started")

        content = log_file.read_text(encoding="utf-8")
        assert "topic=Compound interest kit=- stage=-" in content
        assert "kit started" in content
    finally:
        setup_logging()


def test_run_context_defaults_and_stage_tags(tmp_path):
    log_file = tmp_path / "viral.log"
    try:
        setup_logging(log_file=log_file, kit="build/topic")
        get_logger("tests").bind(stage="mix audio").info("mixing")
        get_logger("tests").info("done")

        lines = log_file.read_text(encoding="utf-8").splitlines()
        assert "topic=- kit=build/topic stage=mix audio" in lines[0]
        assert "kit=build/topic stage=-" in lines[1]
    finally:
        setup_logging()


def test_level_filters_file_output(tmp_path):
    log_file = tmp_path / "viral.log"
    try:
        setup_logging(log_level="WARNING", log_file=log_file)
        get_logger("tests").info("hidden message")
        get_logger("tests").warning("visible message")

        content = log_file.read_text(encoding="utf-8")
        assert "hidden message" not in content
        assert "visible message" in content
    finally:
        setup_logging()
