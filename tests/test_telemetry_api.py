"""
HTTP tests for the telemetry gateway — ingestion, report, ranking,
reset, enable switch, and health.
"""
import os
import sys

import pytest
from fastapi.testclient import TestClient

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from configs.settings import Settings
from services.api_gateway.app import create_app
from services.telemetry_service import InMemoryStore, TelemetryEngine
from services.telemetry_service.hashing import hash_query


@pytest.fixture()
def client(engine):
    with TestClient(create_app(engine)) as c:
        yield c


class TestIngestion:
    def test_search_event(self, client, engine):
        r = client.post(
            "/telemetry/search",
            json={"query": "mountain lake", "sources": ["brave", "bing"], "response_time": 320},
        )
        assert r.status_code == 204
        assert engine.snapshot.search_count == 1
        assert engine.snapshot.popular_queries[0].hash == hash_query("mountain lake")

    def test_api_call_and_cache_and_error(self, client, engine):
        assert client.post("/telemetry/api-call", json={"source": "google", "success": True, "response_time": 100}).status_code == 204
        assert client.post("/telemetry/api-call", json={"source": "google", "success": False, "response_time": 300}).status_code == 204
        assert client.post("/telemetry/cache", json={"cache_type": "imageCache", "hit": True}).status_code == 204
        assert client.post("/telemetry/error", json={"source": "google", "error_type": "quota"}).status_code == 204
        assert engine.get_success_rate("google") == 0.5
        assert engine.get_cache_efficiency("imageCache") == 1.0
        assert engine.snapshot.error_counts == {"google:quota": 1}

    def test_rejects_negative_latency(self, client):
        r = client.post("/telemetry/api-call", json={"source": "google", "success": True, "response_time": -5})
        assert r.status_code == 422


class TestQueries:
    def test_report(self, client, engine):
        engine.record_api_call("google", True, 100)
        engine.record_api_call("google", False, 300)
        body = client.get("/telemetry/report").json()
        assert body["totalSearches"] == 0
        assert body["apiPerformance"] == [
            {
                "source": "google",
                "successRate": "50.0%",
                "avgResponseTime": "200ms",
                "totalCalls": 2,
                "medianResponseTime": "300ms",
                "p95ResponseTime": "n/a",
                "fastestResponse": "100ms",
                "slowestResponse": "300ms",
            }
        ]

    def test_optimal_sources(self, client, engine):
        for _ in range(9):
            engine.record_api_call("A", True, 500)
        engine.record_api_call("A", False, 500)
        for _ in range(82):
            engine.record_api_call("B", True, 100)
        for _ in range(18):
            engine.record_api_call("B", False, 100)
        engine.record_api_call("C", True)

        body = client.get("/telemetry/optimal-sources", params={"category": "images"}).json()
        assert body["category"] == "images"
        order = [s["source"] for s in body["sources"]]
        assert sorted(order) == ["A", "B", "C"]
        # A and B are within the tolerance band, so the faster B goes first
        assert order.index("B") < order.index("A")
        sources = {s["source"]: s for s in body["sources"]}
        assert sources["C"]["avg_response_time_ms"] is None
        assert sources["B"]["avg_response_time_ms"] == 100

    def test_popular_queries(self, client, engine):
        engine.record_search("tide pools", [], 10)
        body = client.get("/telemetry/popular-queries", params={"limit": 5}).json()
        assert body[0]["hash"] == hash_query("tide pools")
        assert body[0]["count"] == 1
        assert "lastUsed" in body[0]

    def test_export(self, client, engine):
        engine.record_search("tide pools", [], 10)
        body = client.get("/telemetry/export").json()
        assert body["report"]["totalSearches"] == 1
        assert "tide pools" not in str(body)


class TestManagement:
    def test_reset(self, client, engine, store):
        engine.record_search("q", ["brave"], 10)
        body = client.post("/telemetry/reset").json()
        assert body["totalSearches"] == 0
        assert engine.snapshot.search_count == 0

    def test_toggle_enabled(self, client, engine):
        body = client.put("/telemetry/enabled", json={"enabled": False}).json()
        assert body == {"enabled": False, "periodic_save_running": False}
        client.post("/telemetry/search", json={"query": "q", "sources": [], "response_time": 1})
        assert engine.snapshot.search_count == 0

    def test_enable_starts_saver_when_booted_disabled(self, clock):
        cfg = Settings(_env_file=None, storage_backend="memory", telemetry_enabled=False)
        eng = TelemetryEngine(InMemoryStore(), settings=cfg, clock=clock)
        with TestClient(create_app(eng)) as c:
            assert c.get("/health").json()["periodic_save_running"] is False
            body = c.put("/telemetry/enabled", json={"enabled": True}).json()
            assert body == {"enabled": True, "periodic_save_running": True}

    def test_health(self, client):
        body = client.get("/health").json()
        assert body["status"] == "healthy"
        assert body["storage_backend"] == "memory"
        assert body["telemetry_enabled"] is True
        assert body["periodic_save_running"] is True


class TestLifespan:
    def test_hydrates_and_flushes(self, engine, store):
        import asyncio

        asyncio.run(store.set("telemetry", {"searchCount": 7}))
        with TestClient(create_app(engine)) as c:
            assert c.get("/telemetry/report").json()["totalSearches"] == 7
            c.post("/telemetry/search", json={"query": "q", "sources": [], "response_time": 1})
        doc = asyncio.run(store.get("telemetry"))
        assert doc["searchCount"] == 8
