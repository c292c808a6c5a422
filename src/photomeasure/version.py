"""Version information for PhotoMeasure."""

__version__ = "0.3.0"
__version_display__ = f"PhotoMeasure V{__version__}"
