"""Syno-Eager Routes Package.

This package contains all route handlers organized by domain:
- dictionary: /api/lookup and /api/connotation
- health: Health check and monitoring endpoints
"""
from synoeager.app.routes import dictionary, health

__all__ = ["dictionary", "health"]
