"""Middleware for the Cacheside API."""

from cacheside.api.middleware.correlation import CorrelationMiddleware

__all__ = ["CorrelationMiddleware"]
