"""blockmark: block-structured hybrid Markdown editor core."""

__version__ = "0.1.0"
