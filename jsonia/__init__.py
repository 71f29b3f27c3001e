"""Jsonia — JSON-driven HTML templating and a DOM action runtime."""

__version__ = "0.3.0"
