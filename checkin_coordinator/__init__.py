"""Team check-in scheduling and reporting service."""

__version__ = "1.0.0"
