"""Regime stability, succession and terminal-condition engine."""

__version__ = "0.1.0"
