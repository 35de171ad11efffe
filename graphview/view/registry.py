"""
graphview/view/registry.py

Mounted GraphViews keyed by application name.

The viewer service owns one registry for its lifetime: views are mounted
on first request and torn down on DELETE or at shutdown.
"""
from __future__ import annotations

import asyncio
from collections.abc import Callable

import structlog

from graphview.client.session import Session
from graphview.errors import UnknownApplication
from graphview.view.graph_view import GraphView

logger = structlog.get_logger(__name__)

ViewFactory = Callable[[str], GraphView]


class ViewRegistry:
    def __init__(self, session: Session, factory: ViewFactory | None = None) -> None:
        self.session = session
        self._factory = factory or (lambda app: GraphView(app, session))
        self._views: dict[str, GraphView] = {}
        self._lock = asyncio.Lock()
        self._mount_locks: dict[str, asyncio.Lock] = {}

    def __contains__(self, app_name: str) -> bool:
        return app_name in self._views

    def __len__(self) -> int:
        return len(self._views)

    @property
    def app_names(self) -> list[str]:
        return sorted(self._views)

    async def get_or_mount(self, app_name: str) -> GraphView:
        """Return the view for *app_name*, mounting it on first use.

        Mounted views are returned without waiting.  Concurrent first
        requests for one application share a per-application lock, so a
        slow fetch never holds up other applications.  A view whose mount
        raises is closed and not registered.
        """
        view = self._views.get(app_name)
        if view is not None:
            return view

        lock = self._mount_locks.setdefault(app_name, asyncio.Lock())
        async with lock:
            view = self._views.get(app_name)
            if view is not None:
                return view
            view = self._factory(app_name)
            try:
                await view.mount()
            except BaseException:
                await view.close()
                raise
            self._views[app_name] = view
            logger.info("view_registered", app=app_name, mounted=len(self._views))
            return view

    def get(self, app_name: str) -> GraphView:
        """Return an already mounted view; raises UnknownApplication otherwise."""
        try:
            return self._views[app_name]
        except KeyError:
            raise UnknownApplication(app_name) from None

    async def remove(self, app_name: str) -> None:
        async with self._lock:
            view = self._views.pop(app_name, None)
            self._mount_locks.pop(app_name, None)
        if view is None:
            raise UnknownApplication(app_name)
        await view.close()
        logger.info("view_removed", app=app_name, mounted=len(self._views))

    async def close_all(self) -> None:
        async with self._lock:
            views = list(self._views.values())
            self._views.clear()
        for view in views:
            try:
                await view.close()
            except Exception:
                logger.exception("view_close_failed", app=view.app_name)
        logger.info("views_closed", count=len(views))


_registry: ViewRegistry | None = None


def get_registry() -> ViewRegistry:
    """FastAPI dependency returning the service-wide registry."""
    if _registry is None:
        raise RuntimeError("View registry not initialised. Call init_views() first.")
    return _registry


async def init_views(session: Session | None = None) -> ViewRegistry:
    """Create the registry (called on app startup)."""
    global _registry
    _registry = ViewRegistry(session or Session.from_settings())
    return _registry


async def close_views() -> None:
    """Tear down every mounted view (called on app shutdown)."""
    global _registry
    if _registry is not None:
        await _registry.close_all()
        _registry = None
