"""Serve a local directory tree over HTTP."""

__version__ = "0.1.0"
