"""Conversion of rich-markup notes into Markdown."""

__version__ = "0.1.0"
