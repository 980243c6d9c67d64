"""Application services composed from the cache and persistence layers."""

from cacheside.services.customers import CustomerService, customer_codec

__all__ = ["CustomerService", "customer_codec"]
