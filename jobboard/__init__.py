"""Staffing job board synchronization: fetch, diff, notify."""

__version__ = "0.1.0"
