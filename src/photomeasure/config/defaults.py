"""Default configuration values for PhotoMeasure.

Configuration is organized into groups. Each group maps to one concern
of the measuring engine (gestures, calibration, logging, ...).
"""

DEFAULT_CONFIG = {
    # --- General ---
    "general": {
        "_label": "General",
        "default_calibration_kind": "linear_scale",  # linear_scale, planar_homography
        "fallback_image_width": 400,
        "fallback_image_height": 300,
    },
    # --- Gestures / viewport ---
    "gestures": {
        "_label": "Gestures & Zoom",
        "tap_slop_px": 8.0,
        "hit_radius_px": 36.0,  # on-screen, independent of zoom
        "min_scale": 1.0,
        "max_scale": 10.0,
        "double_tap_scale": 2.5,
        "double_tap_threshold": 2.0,  # below this a double tap zooms in
        "animation_ms": 180,
        "pinch_extra_pan": False,
        "arm_on_tap": True,
    },
    # --- Calibration ---
    "calibration": {
        "_label": "Calibration",
        "default_known_length": "4.0",  # feet when no unit is given
        "singular_epsilon": 1e-12,
    },
    # --- Pile estimator ---
    "pile": {
        "_label": "Pile Estimator",
        "density_tons_per_cubic_yard": 1.5,  # crushed stone
    },
    # --- Logging ---
    "logging": {
        "_label": "Logging",
        "log_level": "INFO",  # DEBUG, INFO, WARNING, ERROR, CRITICAL
        "log_to_file": True,
        "log_retention_days": 30,
        "log_max_size_mb": 50,
        "log_console_output": True,
    },
}
