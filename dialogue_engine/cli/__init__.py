"""
Command line interface for dialogue engine
"""

from .commands import cli

__all__ = ["cli"]
