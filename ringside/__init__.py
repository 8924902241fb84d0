"""Ringside: authorization engine and relationship workflows for a matchmaking platform."""

__version__ = "1.0.0"
