"""Cacheside: Redis data-structure facade with a cache-aside Customer store."""

__version__ = "0.1.0"
