"""Shared test fixtures for PhotoMeasure."""

import pytest


@pytest.fixture
def tmp_config_dir(tmp_path):
    """Provide a temporary configuration directory."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def config_manager(tmp_config_dir):
    """Provide a ConfigManager with a temp directory."""
    from photomeasure.config.manager import ConfigManager

    mgr = ConfigManager(config_dir=tmp_config_dir)
    mgr.load()
    return mgr


@pytest.fixture
def engine():
    """A 1000x800 photo shown at its own size, nothing placed yet."""
    from photomeasure.core.engine import MeasureEngine

    return MeasureEngine((1000, 800))


@pytest.fixture
def tap(engine):
    """Tap the engine at a viewport position."""
    from photomeasure.core.geometry import Point
    from photomeasure.core.gestures import GestureEnd, GestureStart

    def _tap(x, y):
        engine.on_gesture_event(GestureStart(Point(x, y), 1))
        return engine.on_gesture_event(GestureEnd())

    return _tap
