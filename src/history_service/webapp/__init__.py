"""
Web API for the calculation history.

Provides the REST endpoints under /api/history.
"""

from .server import create_app

__all__ = ["create_app"]
