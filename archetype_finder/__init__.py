"""Archetype Finder — brand archetype assessment scoring service."""

__version__ = "1.0.0"
