"""Jsonia command line interface."""

from jsonia import __version__

__all__ = ["__version__"]
