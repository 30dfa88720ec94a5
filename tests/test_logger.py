"""
Unit tests for the logging processors — raw query text never reaches
the rendered event.
"""
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from services.telemetry_service.hashing import hash_query
from utils.logger import redact_query


class TestRedactQuery:
    def test_query_replaced_by_digest(self):
        processor = redact_query(hash_query)
        event = processor(None, "info", {"event": "search_recorded", "query": "my secret"})
        assert event == {"event": "search_recorded", "query_hash": hash_query("my secret")}

    def test_query_dropped_without_digest(self):
        processor = redact_query()
        event = processor(None, "info", {"event": "search_recorded", "query": "my secret"})
        assert event == {"event": "search_recorded"}

    def test_other_fields_untouched(self):
        processor = redact_query(hash_query)
        event = processor(None, "info", {"event": "saved", "bytes": 12})
        assert event == {"event": "saved", "bytes": 12}

    def test_utils_does_not_import_services(self):
        path = os.path.join(os.path.dirname(__file__), "..", "utils", "logger.py")
        with open(path, encoding="utf-8") as f:
            assert "services" not in f.read()
