# src/__init__.py — v1
"""ofrenda — altar creation pipeline."""

from ofrenda.version import __version__

__all__ = ["__version__"]
