"""API routers for Cacheside."""
