"""Cache key schema for Cacheside.

Key format:
- collection: "{collection}"          e.g. "customers"
- record:     "{prefix}{identifier}"  e.g. "customer42"

There is no namespace prefix and no separator, so keys written by earlier
deployments of the service stay readable.
"""

from __future__ import annotations

import re

_TRAILING_ID = re.compile(r"^(?P<family>.*?)(?P<identifier>\d+)$")


class CacheKeys:
    """Cache key generator following the concatenation convention."""

    CUSTOMERS = "customers"
    CUSTOMER = "customer"

    @classmethod
    def collection(cls, name: str) -> str:
        """Key for a whole cached collection."""
        return name

    @classmethod
    def record(cls, prefix: str, identifier: int | str) -> str:
        """Key for a single cached record."""
        return f"{prefix}{identifier}"

    @classmethod
    def customers(cls) -> str:
        """Key for the cached list of all customers."""
        return cls.collection(cls.CUSTOMERS)

    @classmethod
    def customer(cls, identifier: int | str) -> str:
        """Key for one cached customer."""
        return cls.record(cls.CUSTOMER, identifier)

    @classmethod
    def family(cls, key: str) -> str:
        """Strip a trailing identifier from a key.

        Used as a low-cardinality metrics label: "customer42" -> "customer",
        "customers" -> "customers".
        """
        match = _TRAILING_ID.match(key)
        if match is None or not match.group("family"):
            return key
        return match.group("family")
