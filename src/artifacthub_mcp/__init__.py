"""Artifact Hub tool server for Helm charts."""

__version__ = "1.0.0"
