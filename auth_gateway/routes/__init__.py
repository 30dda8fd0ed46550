"""
API routes for the auth gateway
"""

from . import auth, health, passthrough

__all__ = ["auth", "health", "passthrough"]
