"""
tests/unit/test_filters.py

Unit tests for graphview.view.filters.

Coverage
--------
  - facet_value: per-facet extraction, None where a facet does not apply
  - observe: discovers values (enabled by default), keeps existing toggles
  - is_visible: AND across facets; nodes lacking a field pass that facet
  - search: case-insensitive substring of the name, combined with facets
  - clear: re-enables everything and drops search but keeps known keys
  - visible_edges: both endpoints must be visible
  - is_active / as_dict
"""
from __future__ import annotations

from graphview.models.schemas.graph import GraphEdge, GraphNode, GraphSnapshot
from graphview.view.filters import Facet, FilterState, facet_value


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

def _resource(node_id: str, status: str = "active", **metadata: str) -> GraphNode:
    meta = {"resource_type": "postgres", "provider": "aws", "state": "active", "health": "healthy"}
    meta.update(metadata)
    return GraphNode(id=node_id, name=node_id, type="resource", status=status, metadata=meta)


def _step(node_id: str, status: str = "running", name: str | None = None) -> GraphNode:
    return GraphNode(id=node_id, name=name or node_id, type="step", status=status)


def _snapshot(*nodes: GraphNode) -> GraphSnapshot:
    return GraphSnapshot(app_name="demo", nodes=nodes)


def _state(*nodes: GraphNode) -> FilterState:
    state = FilterState()
    state.observe(_snapshot(*nodes))
    return state


# ---------------------------------------------------------------------------
# Facet extraction
# ---------------------------------------------------------------------------

class TestFacetValue:
    def test_resource_fields(self) -> None:
        node = _resource("db")
        assert facet_value(Facet.TYPE, node) == "resource"
        assert facet_value(Facet.RESOURCE_TYPE, node) == "postgres"
        assert facet_value(Facet.PROVIDER, node) == "aws"
        assert facet_value(Facet.RESOURCE_STATE, node) == "active"
        assert facet_value(Facet.HEALTH_STATUS, node) == "healthy"

    def test_step_lacks_resource_fields(self) -> None:
        node = _step("s1")
        assert facet_value(Facet.STATUS, node) == "running"
        assert facet_value(Facet.RESOURCE_TYPE, node) is None
        assert facet_value(Facet.PROVIDER, node) is None

    def test_provider_node_has_provider_facet(self) -> None:
        node = GraphNode(id="p", type="provider", metadata={"provider_id": "gcp"})
        assert facet_value(Facet.PROVIDER, node) == "gcp"

    def test_empty_status_has_no_value(self) -> None:
        assert facet_value(Facet.STATUS, _step("s1", status="")) is None


# ---------------------------------------------------------------------------
# Observe
# ---------------------------------------------------------------------------

class TestObserve:
    def test_values_default_enabled(self) -> None:
        state = _state(_step("s1"), _resource("db"))
        assert state.facets[Facet.TYPE] == {"step": True, "resource": True}
        assert state.facets[Facet.PROVIDER] == {"aws": True}

    def test_existing_toggles_kept(self) -> None:
        state = _state(_step("s1"))
        state.set(Facet.TYPE, "step", False)
        added = state.observe(_snapshot(_step("s2"), _resource("db")))
        assert state.facets[Facet.TYPE]["step"] is False
        assert state.facets[Facet.TYPE]["resource"] is True
        assert added > 0

    def test_none_snapshot(self) -> None:
        assert FilterState().observe(None) == 0


# ---------------------------------------------------------------------------
# Visibility
# ---------------------------------------------------------------------------

class TestVisibility:
    def test_everything_visible_by_default(self) -> None:
        nodes = [_step("s1"), _resource("db")]
        state = _state(*nodes)
        assert state.visible_nodes(nodes) == nodes
        assert not state.is_active

    def test_conjunction_across_facets(self) -> None:
        aws = _resource("db", provider="aws", resource_type="postgres")
        gcp = _resource("bucket", provider="gcp", resource_type="s3")
        state = _state(aws, gcp)
        state.set(Facet.PROVIDER, "gcp", False)
        state.set(Facet.RESOURCE_TYPE, "postgres", False)
        assert state.visible_nodes([aws, gcp]) == []

    def test_node_lacking_field_passes_that_facet(self) -> None:
        step = _step("s1")
        state = _state(step, _resource("db"))
        state.set(Facet.PROVIDER, "aws", False)
        assert state.is_visible(step)

    def test_status_filter(self) -> None:
        running, failed = _step("s1", "running"), _step("s2", "failed")
        state = _state(running, failed)
        state.toggle(Facet.STATUS, "failed")
        assert state.visible_nodes([running, failed]) == [running]

    def test_toggle_returns_new_state(self) -> None:
        state = _state(_step("s1"))
        assert state.toggle(Facet.TYPE, "step") is False
        assert state.toggle(Facet.TYPE, "step") is True

    def test_unknown_value_defaults_visible(self) -> None:
        state = FilterState()
        assert state.is_visible(_step("never-observed"))


class TestSearch:
    def test_case_insensitive_substring(self) -> None:
        deploy, build = _step("s1", name="Deploy-App"), _step("s2", name="build")
        state = _state(deploy, build)
        state.set_search("  deploy ")
        assert state.search == "deploy"
        assert state.visible_nodes([deploy, build]) == [deploy]
        assert state.is_active

    def test_search_and_facets_combine(self) -> None:
        a = _step("s1", "running", name="deploy-a")
        b = _step("s2", "failed", name="deploy-b")
        state = _state(a, b)
        state.set_search("deploy")
        state.set(Facet.STATUS, "failed", False)
        assert state.visible_nodes([a, b]) == [a]

    def test_search_falls_back_to_id(self) -> None:
        node = GraphNode(id="workflow-42", type="workflow")
        state = FilterState()
        state.set_search("42")
        assert state.is_visible(node)


class TestClear:
    def test_clear_keeps_keys(self) -> None:
        state = _state(_step("s1"), _resource("db"))
        state.set(Facet.TYPE, "step", False)
        state.set_search("db")
        state.clear()
        assert state.facets[Facet.TYPE] == {"step": True, "resource": True}
        assert state.search == ""
        assert not state.is_active


class TestVisibleEdges:
    def test_both_endpoints_required(self) -> None:
        edges = [
            GraphEdge(source_id="a", target_id="b"),
            GraphEdge(source_id="a", target_id="c"),
            GraphEdge(source_id="x", target_id="b"),
        ]
        visible = FilterState().visible_edges(edges, {"a", "b"})
        assert [(e.source_id, e.target_id) for e in visible] == [("a", "b")]


def test_as_dict_uses_facet_names() -> None:
    state = _state(_step("s1"))
    data = state.as_dict()
    assert set(data) == {facet.value for facet in Facet}
    assert data["type"] == {"step": True}
