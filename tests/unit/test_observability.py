"""Tests for structured logging."""
import json
import logging

from src.node_sdk.observability import (
    CustomJsonFormatter,
    NodeContextFilter,
    setup_logging,
    with_node_context,
)


def _record(**extra):
    record = logging.LogRecord("nodepacks.twake_drive.node", logging.INFO, __file__, 1, "moved", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestWithNodeContext:
    """Tests for the logging extra builder."""

    def test_item_index_zero_kept(self):
        extra = with_node_context(workflow_id="wf-1", node_name="Drive", operation="moveFile", item_index=0)
        assert extra == {"workflow_id": "wf-1", "node_name": "Drive", "operation": "moveFile", "item_index": 0}

    def test_empty_values_dropped(self):
        assert with_node_context(workflow_id=None, node_name="", ezlog_key="moveFile") == {"ezlog_key": "moveFile"}


class TestJsonFormatter:
    """Tests for the JSON log format."""

    def test_context_fields_emitted(self):
        formatter = CustomJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s")
        record = _record(workflow_id="wf-1", node_name="Drive", item_index=0)

        payload = json.loads(formatter.format(record))

        assert payload["message"] == "moved"
        assert payload["level"] == "INFO"
        assert payload["logger"] == "nodepacks.twake_drive.node"
        assert payload["workflow_id"] == "wf-1"
        assert payload["item_index"] == 0
        assert "operation" not in payload

    def test_filter_fills_missing_fields(self):
        record = _record()
        assert NodeContextFilter().filter(record) is True
        assert record.node_name is None
        assert record.item_index is None


class TestSetupLogging:
    """Tests for root logger configuration."""

    def test_json_handler(self, monkeypatch):
        monkeypatch.setenv("NODE_SDK_LOG_FORMAT", "json")
        monkeypatch.setenv("NODE_SDK_LOG_LEVEL", "DEBUG")
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level

        try:
            setup_logging()
            assert len(root.handlers) == 1
            assert isinstance(root.handlers[0].formatter, CustomJsonFormatter)
            assert root.level == logging.DEBUG
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)
