"""archctl: architecture rule enforcement over a cross-language dependency graph."""

__version__ = "0.1.0"

__all__ = ["__version__"]
