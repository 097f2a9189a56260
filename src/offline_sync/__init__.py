"""Offline-tolerant request queue with ordered replay."""

__version__ = "0.1.0"
