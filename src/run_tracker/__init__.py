"""GPS activity tracker: live metrics and batched position persistence."""

__version__ = "0.1.0"
