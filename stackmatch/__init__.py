"""stackmatch: scan a developer environment and replay it anywhere."""

__version__ = "0.1.0"
