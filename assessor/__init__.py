"""Evidence gathering and rubric-based assessment of submitted work."""

__version__ = "0.1.0"
