"""HTTP API (FastAPI)."""

from .app import create_app, header_user_resolver

__all__ = ["create_app", "header_user_resolver"]
