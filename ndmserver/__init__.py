"""Threaded TCP/UDP message server with a pluggable middleware chain."""

__version__ = "0.1.0"