"""Criticality score for open source projects hosted on GitHub."""

__version__ = "0.1.0"
