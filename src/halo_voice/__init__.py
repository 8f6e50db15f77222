"""Halo voice agent: turn-taking voice loop and rule-based response engine."""

__version__ = "0.1.0"
