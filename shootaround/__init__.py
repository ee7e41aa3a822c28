"""Shot charting for three-point shootaround practice sessions."""

__version__ = "0.1.0"
