"""Absolute tools - web server bootstrap and CI lint reporting."""

__version__ = "0.1.0"
