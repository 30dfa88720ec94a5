"""
Unit tests for the performance report and the debug export.
"""
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from services.telemetry_service.hashing import hash_query
from services.telemetry_service.models import MetricsSnapshot
from services.telemetry_service.reporter import build_performance_report


class TestPerformanceReport:
    def test_empty(self, engine):
        report = engine.get_performance_report()
        assert report.total_searches == 0
        assert report.api_performance == []
        assert report.cache_performance == []
        assert report.top_errors == []
        assert report.uptime == "0 minutes"

    def test_provider_formatting(self, engine):
        engine.record_api_call("google", True, 100)
        engine.record_api_call("google", False, 300)
        engine.record_api_call("gnews", True)
        report = engine.get_performance_report()
        by_source = {p.source: p for p in report.api_performance}
        assert by_source["google"].success_rate == "50.0%"
        assert by_source["google"].avg_response_time == "200ms"
        assert by_source["google"].total_calls == 2
        assert by_source["gnews"].success_rate == "100.0%"
        assert by_source["gnews"].avg_response_time == "n/a"
        assert by_source["gnews"].fastest_response == "n/a"

    def test_latency_distribution(self, engine):
        for ms in range(1, 21):
            engine.record_api_call("bing", True, ms * 10)
        [bing] = engine.get_performance_report().api_performance
        assert bing.median_response_time == "110ms"
        assert bing.p95_response_time == "200ms"
        assert bing.fastest_response == "10ms"
        assert bing.slowest_response == "200ms"

    def test_p95_needs_twenty_samples(self, engine):
        for ms in range(19):
            engine.record_api_call("bing", True, ms)
        [bing] = engine.get_performance_report().api_performance
        assert bing.p95_response_time == "n/a"
        assert bing.slowest_response == "18ms"

    def test_rounds_half_away_from_zero(self, engine):
        engine.record_api_call("bing", True, 200)
        engine.record_api_call("bing", True, 201)
        for hit in [True] + [False] * 15:
            engine.record_cache_hit("imageCache", hit)
        report = engine.get_performance_report()
        assert report.api_performance[0].avg_response_time == "201ms"
        assert report.cache_performance[0].hit_rate == "6.3%"

    def test_cache_formatting(self, engine):
        for hit in (True, True, True, False):
            engine.record_cache_hit("imageCache", hit)
        [cache] = engine.get_performance_report().cache_performance
        assert cache.type == "imageCache"
        assert cache.hit_rate == "75.0%"
        assert cache.total_requests == 4

    def test_top_errors_sorted_and_capped(self):
        snap = MetricsSnapshot(error_counts={f"p{i}:timeout": i for i in range(1, 15)})
        report = build_performance_report(snap, now_ms=0)
        counts = [e.count for e in report.top_errors]
        assert len(counts) == 10
        assert counts == sorted(counts, reverse=True)
        assert report.top_errors[0].error == "p14:timeout"

    def test_uptime_floors_minutes(self, engine, clock):
        clock.advance(59)
        assert engine.get_performance_report().uptime_minutes == 0
        clock.advance(61 + 60)
        report = engine.get_performance_report()
        assert report.uptime_minutes == 3
        assert report.uptime == "3 minutes"

    def test_camel_case_serialization(self, engine):
        engine.record_search("q", ["brave"], 10)
        dumped = engine.get_performance_report().model_dump(by_alias=True)
        assert dumped["totalSearches"] == 1
        assert set(dumped) == {
            "totalSearches",
            "apiPerformance",
            "cachePerformance",
            "topErrors",
            "uptime",
            "uptimeMinutes",
        }

    def test_report_does_not_mutate(self, engine):
        engine.record_api_call("google", True, 100)
        before = engine.snapshot.model_dump()
        engine.get_performance_report()
        engine.get_optimal_sources("images")
        assert engine.snapshot.model_dump() == before


class TestPopularQueriesAndExport:
    def test_popular_queries_limit(self, engine):
        for q in ["a", "b", "c", "a"]:
            engine.record_search(q, [], 1)
        top = engine.get_popular_queries(limit=2)
        assert [q.hash for q in top] == [hash_query("a"), hash_query("b")]

    def test_export_shape(self, engine, clock):
        engine.record_search("secret words", ["brave"], 10)
        engine.record_api_call("brave", False, 10)
        data = engine.export_data()
        assert data["report"]["totalSearches"] == 1
        assert data["popularQueries"][0]["hash"] == hash_query("secret words")
        assert data["overallErrorRate"] == 1.0
        assert data["timestamp"] == int(clock.now * 1000)
        assert isinstance(data["version"], str)
        assert "secret words" not in repr(data)
