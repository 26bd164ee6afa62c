"""Divwelly: household management and bill splitting, web frontend."""

__version__ = "0.1.0"
