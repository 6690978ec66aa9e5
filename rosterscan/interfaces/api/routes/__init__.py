"""
API Routes.
"""

from . import health, session

__all__ = ["health", "session"]
