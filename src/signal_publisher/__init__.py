"""Turn repository activity into reviewed LinkedIn posts."""

__version__ = "0.1.0"
