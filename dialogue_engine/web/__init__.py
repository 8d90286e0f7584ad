"""
Web API for dialogue engine
"""

from .app import create_app

__all__ = ["create_app"]
