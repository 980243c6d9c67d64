"""Tests for Prometheus metrics helpers."""

from starlette.applications import Starlette

from cacheside.observability.metrics import (
    MetricsMiddleware,
    get_metrics,
    record_cache_hit,
    record_cache_miss,
)


class TestNormalizePath:
    """Test path normalization for metric labels."""

    def test_numeric_segments_replaced(self) -> None:
        middleware = MetricsMiddleware(Starlette())
        assert middleware._normalize_path("/api/customer/customers/42") == (
            "/api/customer/customers/{id}"
        )

    def test_other_paths_unchanged(self) -> None:
        middleware = MetricsMiddleware(Starlette())
        assert middleware._normalize_path("/api/cache/get-string") == "/api/cache/get-string"


class TestCacheCounters:
    """Test hit and miss counters."""

    def test_hits_and_misses_counted_per_family(self) -> None:
        metrics = get_metrics()
        hits = metrics.cache_hits_total.labels(key_family="customer")
        misses = metrics.cache_misses_total.labels(key_family="customer")
        hits_before = hits._value.get()
        misses_before = misses._value.get()

        record_cache_hit("customer")
        record_cache_miss("customer")
        record_cache_miss("customer")

        assert hits._value.get() == hits_before + 1
        assert misses._value.get() == misses_before + 2

    def test_exposition_contains_cache_metrics(self) -> None:
        content = get_metrics().generate_latest()
        assert b"cacheside_cache_hits_total" in content
