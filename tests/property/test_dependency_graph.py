"""Property-based tests for cycle detection and dependency-ordered initialization."""

import asyncio

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from bizbox_plugins.manifest import check_compatibility, detect_circular_dependencies
from bizbox_plugins.plugins import PluginManager
from bizbox_plugins.types import PluginStatus
from tests.mocks import RecordingPlugin, make_manifest


@st.composite
def acyclic_graphs(draw, max_nodes: int = 8):
    """Draw {id: [deps]} where every edge points to a lower-numbered node."""
    size = draw(st.integers(min_value=1, max_value=max_nodes))
    ids = [f"p{i}" for i in range(size)]
    graph = {}
    for index, plugin_id in enumerate(ids):
        deps = draw(st.lists(st.sampled_from(ids[:index]), unique=True)) if index else []
        graph[plugin_id] = deps
    return graph


def _manifests(graph: dict[str, list[str]]):
    return {
        plugin_id: make_manifest(plugin_id, dependencies={d: "1.0.0" for d in deps})
        for plugin_id, deps in graph.items()
    }


def _add_edge(graph: dict[str, list[str]], source: str, target: str) -> None:
    if target not in graph[source]:
        graph[source] = [*graph[source], target]


@pytest.mark.property
class TestCycleDetection:
    """Property tests for detect_circular_dependencies."""

    @given(acyclic_graphs())
    @settings(max_examples=100)
    def test_acyclic_graphs_have_no_cycle(self, graph):
        """Diamonds and shared dependencies are never reported as cycles."""
        manifests = _manifests(graph)
        for manifest in manifests.values():
            assert detect_circular_dependencies(manifest, manifests) == []
            assert check_compatibility(manifest, manifests).compatible

    @given(acyclic_graphs(), st.data())
    @settings(max_examples=100)
    def test_injected_cycle_detected(self, graph, data):
        """Linking two nodes both ways (or a node to itself) is always found."""
        ids = list(graph)
        a = data.draw(st.sampled_from(ids))
        b = data.draw(st.sampled_from(ids))
        _add_edge(graph, a, b)
        _add_edge(graph, b, a)
        manifests = _manifests(graph)

        cycle = detect_circular_dependencies(manifests[a], manifests)

        assert cycle[0] == cycle[-1]
        for source, target in zip(cycle, cycle[1:]):
            assert target in manifests[source].dependencies
        result = check_compatibility(manifests[a], manifests)
        assert not result.compatible
        assert any(i.message.startswith("Circular dependency detected") for i in result.issues)


@pytest.mark.property
class TestInitializationOrder:
    """Property tests for dependency-first initialization."""

    @given(acyclic_graphs(), st.randoms(use_true_random=False))
    @settings(max_examples=50)
    def test_dependencies_initialize_first(self, graph, rnd):
        """Whatever the registration order, each plugin starts after its dependencies."""
        order = list(graph)
        rnd.shuffle(order)
        manifests = _manifests(graph)
        journal: list[str] = []
        manager = PluginManager()

        async def run() -> None:
            for plugin_id in order:
                await manager.register_plugin(RecordingPlugin(journal), manifests[plugin_id])
            await manager.initialize_all_plugins()
            for plugin_id in graph:
                assert manager.registry.require(plugin_id).status == PluginStatus.ACTIVE
            await manager.shutdown()

        asyncio.run(run())

        started = [entry.split(":", 1)[1] for entry in journal[: len(graph)]]
        stopped = [entry.split(":", 1)[1] for entry in journal[len(graph) :]]
        assert sorted(started) == sorted(graph)
        for plugin_id, deps in graph.items():
            for dep in deps:
                assert started.index(dep) < started.index(plugin_id)
        assert stopped == list(reversed(started))
