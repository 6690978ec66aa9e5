"""
API Interface - FastAPI REST API for upload, run, review and export.
"""

from .main import app, create_app

__all__ = ["app", "create_app"]
