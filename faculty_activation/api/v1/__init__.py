"""
API v1 package.

Contains versioned routes for the faculty activation screen.
"""

from faculty_activation.api.v1.routes import router

__all__ = ["router"]
