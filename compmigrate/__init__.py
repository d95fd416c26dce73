"""Component migration pipeline: analyze, transform, generate, validate, record."""

__version__ = "0.1.0"
