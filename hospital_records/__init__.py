"""Hospital-Records: flat-file record keeping for a small hospital."""

__version__ = "1.0.0"
