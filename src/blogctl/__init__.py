"""blogctl: content toolkit for Jekyll-style Markdown blogs."""

__version__ = "0.4.0"
