"""
Shared fixtures: an in-memory graph store with the same upsert semantics as
the Neo4j store, and a scripted dependency source.
"""

import asyncio
import itertools
import threading
from typing import Collection, Dict, Iterable, List, Optional, Sequence, Set, Tuple

import pytest

from models.repository import Repository, RepositoryReference
from utils.exceptions import DependencySourceError, PersistenceError


class InMemoryGraphStore:
    """Graph store fake: nodes keyed by full name, edges as an ordered-pair set."""

    def __init__(self):
        self.nodes: Dict[str, Optional[int]] = {}
        self.edges: Set[Tuple[str, str]] = set()
        self.save_calls: List[str] = []
        self.fail_saves_for: Set[str] = set()
        self.fail_reads = False
        self.closed = False
        self._clock = itertools.count(1)
        # Called from executor threads, like the Neo4j store.
        self._lock = threading.Lock()

    def add_node(self, full_name: str, last_targeted: Optional[int] = None) -> None:
        self.nodes[full_name] = last_targeted

    def save_window(self, ref: RepositoryReference, dependencies: Sequence[Repository], dependents: Sequence[Repository]) -> None:
        with self._lock:
            full_name = str(ref)
            self.save_calls.append(full_name)
            if full_name in self.fail_saves_for:
                raise PersistenceError(f"transaction rejected for {full_name}")
            self.nodes[full_name] = next(self._clock)
            for dep in dependencies:
                self.nodes.setdefault(dep.fully_qualified_name, None)
                self.edges.add((full_name, dep.fully_qualified_name))
            for dep in dependents:
                self.nodes.setdefault(dep.fully_qualified_name, None)
                self.edges.add((dep.fully_qualified_name, full_name))

    def get_untargeted_node(self, exclude: Collection[str] = ()) -> Optional[RepositoryReference]:
        with self._lock:
            if self.fail_reads:
                raise PersistenceError("frontier read failed")
            for name, last_targeted in self.nodes.items():
                if last_targeted is None and "." not in name and name not in exclude:
                    return RepositoryReference.parse(name)
            return None

    def ensure_schema(self) -> None:
        pass

    def close(self) -> None:
        self.closed = True


class StubDependencySource:
    """Serves a fixed neighborhood per reference; unknown references have none."""

    def __init__(self, graph: Optional[Dict[str, Tuple[Iterable[str], Iterable[str]]]] = None, delay: float = 0.0):
        self.graph = {k: (list(v[0]), list(v[1])) for k, v in (graph or {}).items()}
        self.delay = delay
        self.failing_dependencies: Set[str] = set()
        self.failing_dependents: Set[str] = set()
        self.calls: List[Tuple[str, str]] = []
        self.active = 0
        self.max_active = 0

    async def _serve(self, kind: str, ref: RepositoryReference, names: List[str], failing: Set[str]) -> List[Repository]:
        self.calls.append((kind, str(ref)))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(self.delay)
            if str(ref) in failing:
                raise DependencySourceError(f"{kind} unavailable for {ref}")
            return [Repository(fully_qualified_name=n) for n in names]
        finally:
            self.active -= 1

    async def get_dependencies(self, ref: RepositoryReference) -> List[Repository]:
        deps, _ = self.graph.get(str(ref), ([], []))
        return await self._serve("dependencies", ref, deps, self.failing_dependencies)

    async def get_dependents(self, ref: RepositoryReference) -> List[Repository]:
        _, dependents = self.graph.get(str(ref), ([], []))
        return await self._serve("dependents", ref, dependents, self.failing_dependents)


@pytest.fixture
def graph_store():
    return InMemoryGraphStore()


@pytest.fixture
def make_source():
    def _make(graph=None, delay=0.0):
        return StubDependencySource(graph, delay=delay)
    return _make
