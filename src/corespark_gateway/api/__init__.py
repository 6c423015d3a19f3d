"""
HTTP service around the gateway.
"""

from .app import create_app, main
from .routes import router

__all__ = ["create_app", "main", "router"]
