"""piiscan: find personal information in files."""

__version__ = "0.1.0"
