"""
graphview/sync/messages.py

Decoding of graph stream frames.

Three inbound shapes are recognised:

    {"nodes": [...], "edges": [...]}                  full replace
    {"graph": {"nodes": [...], ...}, "event": {...}}  full replace + activity event
    {"node": "<id>", "status": "<s>"}                 partial patch
    {"node": "<id>", "state": "<s>"}                  partial patch (fallback key)

Anything else that is valid JSON (pong frames, unknown envelopes) decodes
to None and is ignored by the synchronizer.  Frames that are not JSON, or
whose graph payload fails validation, raise MalformedMessage.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from graphview.errors import MalformedMessage
from graphview.models.schemas.graph import GraphEvent, GraphSnapshot


@dataclass(frozen=True)
class FullReplace:
    """Replace the whole snapshot."""

    snapshot: GraphSnapshot
    event: GraphEvent | None = None


@dataclass(frozen=True)
class StatusPatch:
    """Change a single node's status."""

    node_id: str
    status: str


StreamMessage = FullReplace | StatusPatch


def _snapshot(app_name: str, payload: dict[str, Any]) -> GraphSnapshot:
    try:
        return GraphSnapshot.model_validate(
            {
                "app_name": app_name,
                "nodes": payload.get("nodes") or [],
                "edges": payload.get("edges") or [],
            }
        )
    except ValidationError as exc:
        raise MalformedMessage(f"Graph payload failed validation: {exc.error_count()} error(s)") from exc


def _event(raw: Any) -> GraphEvent | None:
    if not isinstance(raw, dict):
        return None
    try:
        return GraphEvent.model_validate(raw)
    except ValidationError:
        # The event only feeds the activity log; a bad one does not
        # invalidate the graph it travels with.
        return None


def parse_stream_message(raw: str | bytes, app_name: str = "") -> StreamMessage | None:
    """Decode one stream frame.

    Args:
        raw:      Text (or UTF-8 bytes) frame received from the stream.
        app_name: Application the stream belongs to, stamped on snapshots.

    Returns:
        FullReplace, StatusPatch, or None for frames carrying neither shape.

    Raises:
        MalformedMessage: the frame is not JSON or its graph is invalid.
    """
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise MalformedMessage(f"Frame is not valid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise MalformedMessage(f"Frame is a JSON {type(data).__name__}, expected an object")

    if "nodes" in data and "edges" in data:
        return FullReplace(snapshot=_snapshot(app_name, data))

    graph = data.get("graph")
    if isinstance(graph, dict) and "nodes" in graph and "edges" in graph:
        return FullReplace(
            snapshot=_snapshot(app_name or str(graph.get("app_name", "")), graph),
            event=_event(data.get("event")),
        )

    node_id = data.get("node")
    if node_id:
        status = data.get("status") or data.get("state")
        if not isinstance(node_id, str) or not isinstance(status, str):
            raise MalformedMessage("Patch frame needs a string 'node' and 'status' (or 'state')")
        return StatusPatch(node_id=node_id, status=status)

    return None
