"""Mission Control backend: deliverable lifecycle, approval gate and activity log."""

__version__ = "1.0.0"
