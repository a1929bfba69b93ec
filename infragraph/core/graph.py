"""
Dependency graph of resource nodes.

Edges are never stored. They are derived on demand from each node's input
references and explicit dependency hints, so a node's inputs are the single
source of truth for what it depends on.
"""

from __future__ import annotations

__all__ = ["DependencyGraph"]

import heapq
from typing import Any, Iterable, Iterator

from ._log_helper import get_logger
from .exceptions import (
    CycleDetectedError,
    DanglingReferenceError,
    DuplicateIdError,
    GraphFrozenError,
)
from .group import CompositeGroup
from .node import NodeState, ResourceNode
from .reference import Reference, find_references

logger = get_logger(__name__)


class DependencyGraph:
    name: str | None
    nodes: dict[str, ResourceNode]
    groups: dict[str, CompositeGroup]
    exports: dict[str, Any]

    _frozen: bool

    def __init__(self, name: str | None = None):
        self.name = name
        self.nodes = dict()
        self.groups = dict()
        self.exports = dict()
        self._frozen = False

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    def declare(
        self,
        id: str,
        type: str,
        inputs: dict[str, Any] | None = None,
        depends_on: Iterable[Any] | None = None,
    ) -> ResourceNode:
        return ResourceNode.declare(
            self,
            id=id,
            type=type,
            inputs=inputs,
            depends_on=depends_on,
        )

    def add_node(self, node: ResourceNode) -> ResourceNode:
        self._check_not_frozen()
        if self._exists(node.id):
            raise DuplicateIdError(f"{node.id} is already registered")
        if node._graph is not None:
            raise DuplicateIdError(
                f"{node.id} is already registered in another graph"
            )
        missing = [dep for dep in node.dependencies() if not self._exists(dep)]
        if missing:
            raise DanglingReferenceError(node.id, missing)
        node._graph = self
        node.state = NodeState.REGISTERED
        self.nodes[node.id] = node
        logger.debug("Registered %s (%s)", node.id, node.type)
        return node

    def add_dependency(self, node_id: str, depends_on: str) -> None:
        self._check_not_frozen()
        node = self.get_node(node_id)
        if not self._exists(depends_on):
            raise DanglingReferenceError(node_id, [depends_on])
        if depends_on not in node.depends_on:
            node.depends_on.append(depends_on)

    def group(
        self,
        id: str,
        member_ids: Iterable[Any],
        exposed_outputs: dict[str, Reference] | None = None,
    ) -> CompositeGroup:
        self._check_not_frozen()
        if self._exists(id):
            raise DuplicateIdError(f"{id} is already registered")
        members = [
            member if isinstance(member, str) else member.id
            for member in member_ids
        ]
        missing = [m for m in members if m not in self.nodes]
        if missing:
            raise DanglingReferenceError(id, missing)
        outside: list[str] = []
        for ref in (exposed_outputs or {}).values():
            for dep in ref.dependencies():
                if dep not in members and dep not in outside:
                    outside.append(dep)
        if outside:
            raise DanglingReferenceError(id, outside)
        group = CompositeGroup(
            id=id,
            member_ids=members,
            exposed_outputs=exposed_outputs,
        )
        group._graph = self
        for member in group.member_ids:
            self.nodes[member].parent = group
        self.groups[id] = group
        return group

    def export(self, name: str, value: Any) -> None:
        missing: list[str] = []
        for ref in find_references(value):
            for dep in ref.dependencies():
                if not self._exists(dep) and dep not in missing:
                    missing.append(dep)
        if missing:
            raise DanglingReferenceError(f"export {name}", missing)
        self.exports[name] = value

    def get_node(self, id: str) -> ResourceNode:
        if id not in self.nodes:
            raise KeyError(f"Node {id} not found")
        return self.nodes[id]

    def get_group(self, id: str) -> CompositeGroup:
        if id not in self.groups:
            raise KeyError(f"Group {id} not found")
        return self.groups[id]

    def dependencies_of(self, node_id: str) -> list[str]:
        """Node ids a node depends on, with group ids expanded to members."""
        deps: list[str] = []
        for dep in self.get_node(node_id).dependencies():
            expanded = (
                self.groups[dep].member_ids if dep in self.groups else [dep]
            )
            for item in expanded:
                if item not in deps:
                    deps.append(item)
        return deps

    def requested_outputs(self) -> dict[str, list[str]]:
        """Output names referenced anywhere in the graph, per node id."""
        requested: dict[str, list[str]] = {id: [] for id in self.nodes}
        values: list[Any] = [node.inputs for node in self.nodes.values()]
        values.append(list(self.exports.values()))
        for group in self.groups.values():
            values.append(list(group.exposed_outputs.values()))
        for value in values:
            for ref in find_references(value):
                for output_ref in ref.output_refs():
                    names = requested.get(output_ref.node_id)
                    if names is not None and output_ref.output not in names:
                        names.append(output_ref.output)
        return requested

    def detect_cycle(self) -> list[str] | None:
        done: set[str] = set()
        in_progress: list[str] = []
        on_path: set[str] = set()

        for start in self.nodes:
            if start in done:
                continue
            stack: list[tuple[str, Iterator[str]]] = [
                (start, iter(self.dependencies_of(start)))
            ]
            in_progress.append(start)
            on_path.add(start)
            while stack:
                current, deps = stack[-1]
                dep = next(deps, None)
                if dep is None:
                    stack.pop()
                    in_progress.pop()
                    on_path.discard(current)
                    done.add(current)
                    continue
                if dep in on_path:
                    index = in_progress.index(dep)
                    return in_progress[index:] + [dep]
                if dep in done:
                    continue
                stack.append((dep, iter(self.dependencies_of(dep))))
                in_progress.append(dep)
                on_path.add(dep)
        return None

    def topological_order(self) -> list[ResourceNode]:
        """Nodes ordered so that every dependency precedes its dependents.

        Ties are broken by declaration order. Freezes the graph.

        Raises:
            CycleDetectedError: The graph contains a cycle.
        """
        cycle = self.detect_cycle()
        if cycle is not None:
            raise CycleDetectedError(cycle)
        self._frozen = True

        index = {id: i for i, id in enumerate(self.nodes)}
        pending: dict[str, int] = {}
        dependents: dict[str, list[str]] = {id: [] for id in self.nodes}
        for id in self.nodes:
            deps = self.dependencies_of(id)
            pending[id] = len(deps)
            for dep in deps:
                dependents[dep].append(id)

        ready = [index[id] for id, count in pending.items() if count == 0]
        heapq.heapify(ready)
        ids = list(self.nodes)
        order: list[ResourceNode] = []
        while ready:
            id = ids[heapq.heappop(ready)]
            order.append(self.nodes[id])
            for dependent in dependents[id]:
                pending[dependent] -= 1
                if pending[dependent] == 0:
                    heapq.heappush(ready, index[dependent])
        return order

    def depth_levels(self) -> list[list[ResourceNode]]:
        depth: dict[str, int] = {}
        levels: list[list[ResourceNode]] = []
        for node in self.topological_order():
            deps = self.dependencies_of(node.id)
            level = max((depth[dep] + 1 for dep in deps), default=0)
            depth[node.id] = level
            if level == len(levels):
                levels.append([])
            levels[level].append(node)
        return levels

    def _exists(self, id: str) -> bool:
        return id in self.nodes or id in self.groups

    def _check_not_frozen(self) -> None:
        if self._frozen:
            label = f"Graph {self.name}" if self.name else "Graph"
            raise GraphFrozenError(f"{label} is frozen after ordering")

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self) -> Iterator[ResourceNode]:
        return iter(self.nodes.values())

    def __contains__(self, id: object) -> bool:
        return id in self.nodes or id in self.groups
