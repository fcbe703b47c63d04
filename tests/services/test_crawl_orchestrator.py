"""Tests for the crawl orchestrator."""

import asyncio
from unittest.mock import MagicMock

import pytest

from models.repository import Repository, RepositoryReference
from services.crawl_orchestrator import CrawlOrchestrator, CrawlResult
from utils.exceptions import DependencySourceError, FetchError, PersistenceError

WIDGETS = RepositoryReference.parse("acme/widgets")


@pytest.mark.asyncio
async def test_end_to_end_single_crawl(graph_store, make_source):
    source = make_source({"acme/widgets": (["acme/gears"], ["acme/app"])})

    result = await CrawlOrchestrator(source, graph_store).crawl(WIDGETS)

    assert result == CrawlResult(reference=WIDGETS, dependencies=1, dependents=1)
    assert set(graph_store.nodes) == {"acme/widgets", "acme/gears", "acme/app"}
    assert graph_store.edges == {("acme/widgets", "acme/gears"), ("acme/app", "acme/widgets")}
    assert graph_store.nodes["acme/widgets"] is not None
    assert graph_store.nodes["acme/gears"] is None
    assert graph_store.nodes["acme/app"] is None


@pytest.mark.asyncio
async def test_both_queries_are_issued_for_the_reference(graph_store, make_source):
    source = make_source()

    await CrawlOrchestrator(source, graph_store).crawl(WIDGETS)

    assert sorted(source.calls) == [("dependencies", "acme/widgets"), ("dependents", "acme/widgets")]


@pytest.mark.asyncio
async def test_queries_run_concurrently(graph_store, make_source):
    source = make_source(delay=0.05)

    await CrawlOrchestrator(source, graph_store).crawl(WIDGETS)

    assert source.max_active == 2


@pytest.mark.asyncio
async def test_failed_dependents_query_writes_nothing(graph_store, make_source):
    source = make_source({"acme/widgets": (["acme/gears"], ["acme/app"])})
    source.failing_dependents.add("acme/widgets")

    with pytest.raises(FetchError) as exc_info:
        await CrawlOrchestrator(source, graph_store).crawl(WIDGETS)

    assert exc_info.value.query == "dependents"
    assert exc_info.value.reference == WIDGETS
    assert isinstance(exc_info.value.cause, DependencySourceError)
    assert isinstance(exc_info.value.__cause__, DependencySourceError)
    assert graph_store.save_calls == []
    assert graph_store.nodes == {}
    assert graph_store.edges == set()


@pytest.mark.asyncio
async def test_failed_dependencies_query_writes_nothing(graph_store, make_source):
    source = make_source({"acme/widgets": (["acme/gears"], ["acme/app"])})
    source.failing_dependencies.add("acme/widgets")

    with pytest.raises(FetchError) as exc_info:
        await CrawlOrchestrator(source, graph_store).crawl(WIDGETS)

    assert exc_info.value.query == "dependencies"
    assert graph_store.save_calls == []


@pytest.mark.asyncio
async def test_waits_for_both_queries_even_when_one_fails_fast():
    finished = []

    class SlowDependents:
        async def get_dependencies(self, ref):
            raise DependencySourceError("boom")

        async def get_dependents(self, ref):
            await asyncio.sleep(0.05)
            finished.append("dependents")
            return []

    store = MagicMock()

    with pytest.raises(FetchError):
        await CrawlOrchestrator(SlowDependents(), store).crawl(WIDGETS)

    assert finished == ["dependents"]
    store.save_window.assert_not_called()


@pytest.mark.asyncio
async def test_dependencies_failure_reported_when_both_fail(graph_store, make_source):
    source = make_source()
    source.failing_dependencies.add("acme/widgets")
    source.failing_dependents.add("acme/widgets")

    with pytest.raises(FetchError) as exc_info:
        await CrawlOrchestrator(source, graph_store).crawl(WIDGETS)

    assert exc_info.value.query == "dependencies"


@pytest.mark.asyncio
async def test_persistence_error_propagates(graph_store, make_source):
    source = make_source({"acme/widgets": (["acme/gears"], [])})
    graph_store.fail_saves_for.add("acme/widgets")

    with pytest.raises(PersistenceError):
        await CrawlOrchestrator(source, graph_store).crawl(WIDGETS)

    assert graph_store.save_calls == ["acme/widgets"]


@pytest.mark.asyncio
async def test_exactly_one_save_per_successful_crawl():
    class Source:
        async def get_dependencies(self, ref):
            return [Repository("acme/gears")]

        async def get_dependents(self, ref):
            return [Repository("acme/app")]

    store = MagicMock()

    await CrawlOrchestrator(Source(), store).crawl(WIDGETS)

    store.save_window.assert_called_once_with(WIDGETS, [Repository("acme/gears")], [Repository("acme/app")])


@pytest.mark.asyncio
async def test_repeated_crawls_are_idempotent(graph_store, make_source):
    source = make_source({"acme/widgets": (["acme/gears"], ["acme/app"])})
    orchestrator = CrawlOrchestrator(source, graph_store)

    await orchestrator.crawl(WIDGETS)
    first_edges = set(graph_store.edges)
    first_nodes = set(graph_store.nodes)
    first_stamp = graph_store.nodes["acme/widgets"]
    await orchestrator.crawl(WIDGETS)

    assert graph_store.edges == first_edges
    assert set(graph_store.nodes) == first_nodes
    assert graph_store.nodes["acme/widgets"] > first_stamp
