"""Version information for CogMD."""

__version__ = "0.1.0"
