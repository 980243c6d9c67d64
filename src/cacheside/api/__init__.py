"""HTTP API for Cacheside."""
