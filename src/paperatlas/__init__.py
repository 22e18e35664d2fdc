"""paperatlas: arXiv harvest, merge, tag and rank pipeline."""

__version__ = "0.1.0"
