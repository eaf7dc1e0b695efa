"""API route handlers."""

from api.routes import health

__all__ = ["health"]
