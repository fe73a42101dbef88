"""Emotiva middleware."""

from emotiva.middleware.auth import AuthMiddleware

__all__ = ["AuthMiddleware"]
