"""Policy-based URL access-control filter."""

__version__ = "1.0.0"
