"""
tests/unit/test_stream_messages.py

Unit tests for graphview.sync.messages.parse_stream_message.

Coverage
--------
  - {"nodes", "edges"} → FullReplace stamped with the app name
  - {"graph": {...}, "event": {...}} → FullReplace carrying the event
  - Invalid event in an envelope → FullReplace with event None
  - {"node", "status"} / {"node", "state"} → StatusPatch
  - Frames with neither shape → None
  - Non-JSON, non-object JSON, invalid graph, unknown node type → MalformedMessage
  - bytes frames are accepted
"""
from __future__ import annotations

import json

import pytest

from graphview.errors import MalformedMessage
from graphview.models.schemas.graph import NodeType
from graphview.sync.messages import FullReplace, StatusPatch, parse_stream_message


def _frame(payload: object) -> str:
    return json.dumps(payload)


class TestFullReplace:
    def test_plain_graph(self) -> None:
        frame = _frame({
            "nodes": [{"id": "s1", "name": "deploy", "type": "step", "status": "running"}],
            "edges": [{"id": "e1", "source_id": "w1", "target_id": "s1", "type": "contains"}],
        })
        message = parse_stream_message(frame, "shop")
        assert isinstance(message, FullReplace)
        assert message.snapshot.app_name == "shop"
        assert message.snapshot.nodes[0].type is NodeType.STEP
        assert message.snapshot.edges[0].relationship == "contains"
        assert message.event is None

    def test_envelope_with_event(self) -> None:
        frame = _frame({
            "graph": {"app_name": "shop", "nodes": [], "edges": []},
            "event": {"type": "node_state_changed", "node_id": "s1", "old_state": "pending", "new_state": "running"},
        })
        message = parse_stream_message(frame)
        assert isinstance(message, FullReplace)
        assert message.snapshot.app_name == "shop"
        assert message.event is not None
        assert message.event.new_state == "running"

    def test_envelope_with_invalid_event_keeps_graph(self) -> None:
        frame = _frame({"graph": {"nodes": [], "edges": []}, "event": {"node_id": "missing-type"}})
        message = parse_stream_message(frame, "shop")
        assert isinstance(message, FullReplace)
        assert message.event is None

    def test_null_lists_become_empty(self) -> None:
        message = parse_stream_message(_frame({"nodes": None, "edges": None}), "shop")
        assert isinstance(message, FullReplace)
        assert message.snapshot.is_empty

    def test_bytes_frame(self) -> None:
        message = parse_stream_message(b'{"nodes": [], "edges": []}', "shop")
        assert isinstance(message, FullReplace)


class TestStatusPatch:
    def test_status_key(self) -> None:
        assert parse_stream_message(_frame({"node": "s1", "status": "failed"})) == StatusPatch("s1", "failed")

    def test_state_key_fallback(self) -> None:
        assert parse_stream_message(_frame({"node": "s1", "state": "active"})) == StatusPatch("s1", "active")

    def test_status_preferred_over_state(self) -> None:
        message = parse_stream_message(_frame({"node": "s1", "status": "running", "state": "x"}))
        assert message == StatusPatch("s1", "running")

    def test_missing_status_is_malformed(self) -> None:
        with pytest.raises(MalformedMessage):
            parse_stream_message(_frame({"node": "s1"}))


class TestIgnoredAndMalformed:
    @pytest.mark.parametrize("payload", [{"type": "pong"}, {}, {"nodes": []}, {"graph": "nope"}])
    def test_unrecognised_shapes_return_none(self, payload: dict) -> None:
        assert parse_stream_message(_frame(payload)) is None

    def test_not_json(self) -> None:
        with pytest.raises(MalformedMessage):
            parse_stream_message("{nodes:")

    def test_json_array(self) -> None:
        with pytest.raises(MalformedMessage):
            parse_stream_message("[1, 2]")

    def test_unknown_node_type(self) -> None:
        frame = _frame({"nodes": [{"id": "x", "type": "database"}], "edges": []})
        with pytest.raises(MalformedMessage):
            parse_stream_message(frame)

    def test_edge_without_endpoints(self) -> None:
        frame = _frame({"nodes": [], "edges": [{"id": "e1"}]})
        with pytest.raises(MalformedMessage):
            parse_stream_message(frame)
