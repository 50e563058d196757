"""UK National Minimum / Living Wage compliance engine."""

__version__ = "0.1.0"
