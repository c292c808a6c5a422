"""
PhotoMeasure - recover real-world distances from points tapped on a photo.

Calibrate against a known length (or a known rectangle for perspective
correction), then drag two points to measure anything else lying in the
same plane. The engine owns the viewport transform, point editing and
gesture arbitration; rendering is left to the caller.
"""

from photomeasure.version import __version__, __version_display__

__all__ = ["__version__", "__version_display__"]
