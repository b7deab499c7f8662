"""Multi-intersection traffic signal coordination."""

__version__ = "0.1.0"
