"""YUANDI order core: order lifecycle, numbering and persistence."""

__version__ = "0.1.0"
