"""Client-side management sync agent."""

__version__ = "1.0.0"
