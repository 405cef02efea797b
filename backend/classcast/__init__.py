"""ClassCast - live classroom broadcast and translation backend."""

__version__ = "1.0.0"
