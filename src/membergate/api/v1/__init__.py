"""
API v1 package.

Contains versioned API routes for the signup approval API.
"""

from membergate.api.v1.routes import router

__all__ = ["router"]
