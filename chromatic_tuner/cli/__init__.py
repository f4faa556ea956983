"""Command-line interface for the chromatic tuner."""

from .main import main

__all__ = ["main"]
