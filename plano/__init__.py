"""Restaurant floor-plan layout editor."""

__version__ = "0.1.0"
