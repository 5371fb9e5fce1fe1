"""Section-aware navigation guards, route resolution and asset preloading."""

__version__ = "1.0.0"
