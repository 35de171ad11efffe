"""
tests/api/conftest.py

Shared fixtures for viewer route tests.

The `client` fixture:
  - Patches init_views / close_views in the app lifespan so nothing talks
    to a platform.
  - Overrides the get_registry dependency with a ViewRegistry whose views
    use the `platform_api` AsyncMock for REST calls and an idle stream that
    reports ``live`` and returns immediately.
  - Leaves require_api_key using the real implementation; authenticated
    requests send the default "changeme" key (settings.api_key default).
  - Clears dependency_overrides after each test.
"""
from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from graphview.client.http import GraphApiClient
from graphview.client.session import Session
from graphview.main import app
from graphview.models.schemas.graph import GraphSnapshot
from graphview.sync.synchronizer import ConnectionState
from graphview.view.graph_view import GraphView
from graphview.view.registry import ViewRegistry, get_registry

# Default API key that matches settings.api_key default value.
VALID_API_KEY = "changeme"

SESSION = Session(api_url="http://platform.test/api", ws_url="ws://platform.test/api")

GRAPH_PAYLOAD = {
    "nodes": [
        {"id": "spec-shop", "name": "shop", "type": "spec", "status": "active"},
        {"id": "workflow-7", "name": "deploy", "type": "workflow", "status": "running"},
        {"id": "step-1", "name": "build", "type": "step", "status": "succeeded",
         "step_number": 1, "total_steps": 2, "duration_ms": 800},
        {"id": "step-2", "name": "push", "type": "step", "status": "running",
         "step_number": 2, "total_steps": 2},
        {"id": "res-db", "name": "db", "type": "resource", "status": "active",
         "metadata": {"resource_type": "postgres", "provider": "aws"}},
        {"id": "prov-aws", "name": "aws", "type": "provider", "metadata": {"provider_id": "aws"}},
    ],
    "edges": [
        {"source_id": "spec-shop", "target_id": "workflow-7", "type": "contains"},
        {"source_id": "workflow-7", "target_id": "step-1", "type": "contains"},
        {"source_id": "workflow-7", "target_id": "step-2", "type": "contains"},
        {"source_id": "step-1", "target_id": "step-2", "type": "depends_on"},
        {"source_id": "spec-shop", "target_id": "res-db", "type": "depends_on"},
        {"source_id": "res-db", "target_id": "prov-aws", "type": "provisioned_by"},
    ],
}


def make_snapshot(app_name: str = "shop") -> GraphSnapshot:
    return GraphSnapshot.model_validate({"app_name": app_name, **GRAPH_PAYLOAD})


class IdleStream:
    """Stream stand-in: reports live and ends without frames."""

    async def run(self, on_message, on_status) -> None:
        on_status(ConnectionState.LIVE)


@pytest.fixture()
def platform_api() -> AsyncMock:
    api = AsyncMock(spec=GraphApiClient)
    api.get_graph.side_effect = lambda app_name: make_snapshot(app_name)
    return api


@pytest.fixture()
def registry(platform_api: AsyncMock) -> ViewRegistry:
    return ViewRegistry(
        SESSION,
        factory=lambda app_name: GraphView(
            app_name,
            SESSION,
            api=platform_api,
            stream_factory=lambda _app: IdleStream(),
        ),
    )


@pytest.fixture()
def client(registry: ViewRegistry) -> TestClient:  # type: ignore[return]
    """
    Return a TestClient with the platform boundary mocked.

    Yields inside a context manager so lifespan patches are active for the
    full duration of each test, and dependency_overrides are cleared on exit.
    """
    app.dependency_overrides[get_registry] = lambda: registry

    with (
        patch("graphview.main.init_views"),
        patch("graphview.main.close_views"),
    ):
        with TestClient(app, raise_server_exceptions=True) as c:
            yield c

    app.dependency_overrides.clear()
