"""Tests for the configuration system."""

import json

import pytest

from photomeasure.config.defaults import DEFAULT_CONFIG
from photomeasure.config.manager import ConfigManager
from photomeasure.core.calibration import CalibrationKind
from photomeasure.core.engine import EngineSettings, MeasureEngine


class TestConfigManager:
    def test_load_defaults(self, config_manager):
        """Config loads with default values."""
        assert config_manager.get("gestures", "tap_slop_px") == 8.0
        assert config_manager.get("calibration", "default_known_length") == "4.0"

    def test_set_and_get(self, config_manager):
        """Can set and retrieve values."""
        config_manager.set("gestures", "hit_radius_px", 48.0)
        assert config_manager.get("gestures", "hit_radius_px") == 48.0

    def test_save_and_reload(self, tmp_config_dir):
        """Config persists across save/load cycles."""
        mgr = ConfigManager(config_dir=tmp_config_dir)
        mgr.load()
        mgr.set("pile", "density_tons_per_cubic_yard", 1.4)
        mgr.save()

        mgr2 = ConfigManager(config_dir=tmp_config_dir)
        mgr2.load()
        assert mgr2.get("pile", "density_tons_per_cubic_yard") == 1.4

    def test_saved_file_has_no_labels(self, config_manager):
        config_manager.save()
        with open(config_manager.config_path, encoding="utf-8") as f:
            data = json.load(f)
        assert "_label" not in data["gestures"]

    def test_partial_file_keeps_defaults(self, tmp_config_dir):
        """A user file with one key does not drop the rest of the group."""
        path = tmp_config_dir / ConfigManager.CONFIG_FILENAME
        path.write_text(json.dumps({"gestures": {"max_scale": 6.0}}), encoding="utf-8")
        mgr = ConfigManager(config_dir=tmp_config_dir)
        mgr.load()
        assert mgr.get("gestures", "max_scale") == 6.0
        assert mgr.get("gestures", "min_scale") == 1.0

    def test_corrupt_file_falls_back_to_defaults(self, tmp_config_dir):
        path = tmp_config_dir / ConfigManager.CONFIG_FILENAME
        path.write_text("{not json", encoding="utf-8")
        mgr = ConfigManager(config_dir=tmp_config_dir)
        mgr.load()
        assert mgr.get("gestures", "tap_slop_px") == 8.0

    def test_groups(self, config_manager):
        """All expected groups are present."""
        groups = config_manager.groups()
        for group in ("general", "gestures", "calibration", "pile", "logging"):
            assert group in groups

    def test_group_labels(self, config_manager):
        """Groups have display labels."""
        assert config_manager.get_group_label("gestures") == "Gestures & Zoom"
        assert config_manager.get_group_label("pile") == "Pile Estimator"

    def test_reset_group(self, config_manager):
        config_manager.set("gestures", "tap_slop_px", 20.0)
        config_manager.reset_group("gestures")
        assert config_manager.get("gestures", "tap_slop_px") == 8.0

    def test_reset_unknown_group(self, config_manager):
        with pytest.raises(KeyError):
            config_manager.reset_group("nope")

    def test_listener_called(self, config_manager):
        """Config change listeners are notified."""
        changes = []
        config_manager.add_listener(
            lambda group, key, new, old: changes.append((group, key, new, old))
        )
        config_manager.set("gestures", "double_tap_scale", 3.0)
        config_manager.set("gestures", "double_tap_scale", 3.0)
        assert changes == [("gestures", "double_tap_scale", 3.0, 2.5)]

    def test_default_config_has_labels(self):
        """Every default config group has a _label."""
        for group, values in DEFAULT_CONFIG.items():
            assert "_label" in values, f"Group '{group}' missing _label"


class TestEngineSettings:
    def test_defaults_without_config(self):
        settings = EngineSettings.from_config(None)
        assert settings.tap_slop == 8.0
        assert settings.hit_radius == 36.0
        assert settings.animation_seconds == pytest.approx(0.18)
        assert settings.default_kind is CalibrationKind.LINEAR_SCALE

    def test_reads_config(self, config_manager):
        config_manager.set("gestures", "hit_radius_px", 50)
        config_manager.set("general", "default_calibration_kind", "planar_homography")
        settings = EngineSettings.from_config(config_manager)
        assert settings.hit_radius == 50.0
        assert settings.default_kind is CalibrationKind.PLANAR_HOMOGRAPHY

    def test_engine_uses_config(self, config_manager):
        config_manager.set("calibration", "default_known_length", "54 in")
        engine = MeasureEngine((400, 300), config=config_manager)
        assert engine.known_length == 54.0
