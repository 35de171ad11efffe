"""
graphview/sync/synchronizer.py

Per-application graph state kept in step with the platform.

State
-----
  snapshot            current GraphSnapshot, or None before any base arrives
  previous_statuses   node-id → status of the generation before ``snapshot``
  load_state / error  outcome of the last REST fetch
  connection          stream status (connecting / live / offline / closed)
  generation          incremented on every applied change
  activity            bounded log of GraphEvents from enveloped frames

Update rules
------------
  full replace   replaces the snapshot wholesale
  status patch   replaces exactly one node object; everything else keeps
                 its reference.  Unknown node ids are a no-op.  Patches that
                 arrive before any base snapshot are buffered and replayed
                 once a base exists.

Nothing here raises to the caller: fetch failures become ``error`` state,
malformed frames are logged and dropped, and losing the stream only flips
``connection`` to offline while the last snapshot stays in place.
"""
from __future__ import annotations

from collections import deque
from collections.abc import Callable
from enum import Enum

import structlog

from graphview.client.http import GraphApiClient
from graphview.config import settings
from graphview.errors import GraphFetchError, MalformedMessage
from graphview.models.schemas.graph import GraphEvent, GraphSnapshot
from graphview.sync.messages import FullReplace, StatusPatch, StreamMessage, parse_stream_message

logger = structlog.get_logger(__name__)


class LoadState(str, Enum):
    IDLE    = "idle"
    LOADING = "loading"
    READY   = "ready"
    ERROR   = "error"


class ConnectionState(str, Enum):
    CONNECTING = "connecting"
    LIVE       = "live"
    OFFLINE    = "offline"
    CLOSED     = "closed"


Listener = Callable[["GraphSynchronizer"], None]


def changed_node_ids(
    snapshot: GraphSnapshot | None,
    previous_statuses: dict[str, str] | None,
) -> set[str]:
    """Ids present in both generations whose status differs."""
    if snapshot is None or not previous_statuses:
        return set()
    return {
        node.id
        for node in snapshot.nodes
        if node.id in previous_statuses and previous_statuses[node.id] != node.status
    }


class GraphSynchronizer:
    """Holds and updates the live graph snapshot of one application."""

    def __init__(
        self,
        app_name: str,
        api: GraphApiClient,
        *,
        patch_buffer: int = settings.stream_patch_buffer,
        activity_size: int = settings.activity_log_size,
    ) -> None:
        self.app_name = app_name
        self._api = api
        self.snapshot: GraphSnapshot | None = None
        self.previous_statuses: dict[str, str] | None = None
        self.load_state = LoadState.IDLE
        self.error: str | None = None
        self.connection = ConnectionState.CONNECTING
        self.generation = 0
        self.activity: deque[GraphEvent] = deque(maxlen=activity_size)
        self._pending: deque[StatusPatch] = deque(maxlen=patch_buffer)
        self._listeners: list[Listener] = []

    # ── Listeners ────────────────────────────────────────
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register *listener*; returns a function that unregisters it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("graph_listener_failed", app=self.app_name)

    # ── Derived state ────────────────────────────────────
    @property
    def has_base(self) -> bool:
        return self.snapshot is not None

    def changed_node_ids(self) -> set[str]:
        return changed_node_ids(self.snapshot, self.previous_statuses)

    @property
    def pending_patches(self) -> int:
        return len(self._pending)

    # ── REST fetch ───────────────────────────────────────
    async def load(self) -> bool:
        """Fetch the snapshot over REST.

        Returns True on success.  On failure the error is recorded, any
        existing snapshot is kept and False is returned.
        """
        self.load_state = LoadState.LOADING
        self.error = None
        self._notify()
        try:
            snapshot = await self._api.get_graph(self.app_name)
        except GraphFetchError as exc:
            self.load_state = LoadState.ERROR
            self.error = str(exc)
            logger.warning(
                "graph_load_failed",
                app=self.app_name,
                status_code=exc.status_code,
                error=str(exc),
            )
            self._notify()
            return False

        self.load_state = LoadState.READY
        self.apply_full(snapshot)
        logger.info(
            "graph_loaded",
            app=self.app_name,
            nodes=len(snapshot.nodes),
            edges=len(snapshot.edges),
        )
        return True

    async def retry(self) -> bool:
        """Re-run the snapshot fetch after a failure."""
        return await self.load()

    # ── Stream frames ────────────────────────────────────
    def handle_raw(self, raw: str | bytes) -> StreamMessage | None:
        """Decode and apply one stream frame; malformed frames are dropped."""
        try:
            message = parse_stream_message(raw, self.app_name)
        except MalformedMessage as exc:
            logger.warning("graph_stream_malformed_frame", app=self.app_name, error=str(exc))
            return None
        if message is None:
            logger.debug("graph_stream_frame_ignored", app=self.app_name)
            return None
        self.apply(message)
        return message

    def apply(self, message: StreamMessage) -> None:
        if isinstance(message, FullReplace):
            if message.event is not None:
                self.activity.append(message.event)
            self.apply_full(message.snapshot)
        else:
            self.apply_patch(message.node_id, message.status)

    def apply_full(self, snapshot: GraphSnapshot) -> None:
        """Replace the snapshot wholesale, then replay buffered patches."""
        if not snapshot.app_name:
            snapshot = snapshot.model_copy(update={"app_name": self.app_name})
        self.previous_statuses = self.snapshot.status_map() if self.snapshot is not None else None
        self.snapshot = snapshot
        self.generation += 1
        logger.debug(
            "graph_snapshot_replaced",
            app=self.app_name,
            generation=self.generation,
            nodes=len(snapshot.nodes),
        )

        if self._pending:
            replay = list(self._pending)
            self._pending.clear()
            for patch in replay:
                self._patch_in_place(patch.node_id, patch.status, record=False)
            logger.debug("graph_buffered_patches_replayed", app=self.app_name, count=len(replay))

        self._notify()

    def apply_patch(self, node_id: str, status: str) -> bool:
        """Set one node's status.  Returns True when the snapshot changed."""
        if self.snapshot is None:
            self._pending.append(StatusPatch(node_id=node_id, status=status))
            logger.debug("graph_patch_buffered", app=self.app_name, node_id=node_id)
            return False
        changed = self._patch_in_place(node_id, status, record=True)
        if changed:
            self._notify()
        return changed

    def _patch_in_place(self, node_id: str, status: str, *, record: bool) -> bool:
        snapshot = self.snapshot
        if snapshot is None:
            return False
        nodes = snapshot.nodes
        for index, node in enumerate(nodes):
            if node.id == node_id:
                break
        else:
            logger.debug("graph_patch_unknown_node", app=self.app_name, node_id=node_id)
            return False

        if record:
            self.previous_statuses = snapshot.status_map()
        patched = node.model_copy(update={"status": status})
        self.snapshot = snapshot.model_copy(
            update={"nodes": nodes[:index] + (patched,) + nodes[index + 1:]}
        )
        self.generation += 1
        logger.debug(
            "graph_node_patched",
            app=self.app_name,
            node_id=node_id,
            old_status=node.status,
            new_status=status,
        )
        return True

    # ── Connection status ────────────────────────────────
    def set_connection(self, state: ConnectionState) -> None:
        """Record the stream status; never touches the snapshot."""
        if state == self.connection:
            return
        self.connection = state
        logger.info("graph_stream_status", app=self.app_name, status=state.value)
        self._notify()
