"""jotmark - plain-text notes with checklists, rendered from a small markup dialect."""

__version__ = "0.3.0"
