"""Tests for loguru sink setup."""

from loguru import logger

from photomeasure.core.logging import LOG_FILENAME, setup_logging


def test_file_sink(config_manager, tmp_path):
    log_dir = tmp_path / "logs"
    path = setup_logging(config_manager, log_dir=log_dir)
    assert path == log_dir / LOG_FILENAME
    logger.debug("pinch started")
    logger.remove()
    text = path.read_text(encoding="utf-8")
    assert "Logging initialized" in text
    assert "pinch started" in text


def test_file_sink_disabled(config_manager, tmp_path):
    config_manager.set("logging", "log_to_file", False)
    config_manager.set("logging", "log_console_output", False)
    assert setup_logging(config_manager, log_dir=tmp_path / "logs") is None
    assert not (tmp_path / "logs").exists()
    logger.remove()
