"""SoberStats: a local recovery journal."""

__version__ = "1.0.2"
