"""
Resource nodes.
"""

from __future__ import annotations

__all__ = ["NodeState", "ResourceNode"]

import weakref
from enum import Enum
from threading import Lock
from typing import TYPE_CHECKING, Any, Iterable

from .cell import ValueCell
from .exceptions import (
    OutputAlreadyPublishedError,
    ProvisionError,
)
from .reference import OutputRef, Reference, find_references, resolve_value

if TYPE_CHECKING:
    from .graph import DependencyGraph
    from .group import CompositeGroup


class NodeState(str, Enum):
    UNREGISTERED = "unregistered"
    REGISTERED = "registered"
    RESOLVING = "resolving"
    PROVISIONING = "provisioning"
    RESOLVED = "resolved"
    FAILED = "failed"
    SKIPPED = "skipped"


TERMINAL_STATES = (NodeState.RESOLVED, NodeState.FAILED, NodeState.SKIPPED)


class ResourceNode:
    """Declared unit of infrastructure.

    Attributes:
        id: Unique id within the graph.
        type: Type tag. Opaque to the engine, interpreted by providers.
        inputs: Attribute values. Literals or references to other
            nodes' outputs, nested anywhere in dicts and lists.
        depends_on: Explicit dependency ids in addition to the ones
            implied by references.
        outputs: Output cells, created on first access.
        completion: Resolves when the node succeeds, fails otherwise.
        state: Lifecycle state.
        error: Failure or skip reason once terminal.
    """

    id: str
    type: str
    inputs: dict[str, Any]
    depends_on: list[str]
    outputs: dict[str, ValueCell]
    completion: ValueCell
    state: NodeState
    error: BaseException | None

    _graph: DependencyGraph | None
    _parent: weakref.ReferenceType[CompositeGroup] | None
    _published: bool
    _lock: Lock

    def __init__(
        self,
        id: str,
        type: str,
        inputs: dict[str, Any] | None = None,
        depends_on: Iterable[Any] | None = None,
    ):
        self.id = id
        self.type = type
        self.inputs = dict(inputs or {})
        self.depends_on = _normalize_depends_on(depends_on)
        self.outputs = dict()
        self.completion = ValueCell(name=f"{id}.__completion__")
        self.state = NodeState.UNREGISTERED
        self.error = None
        self._graph = None
        self._parent = None
        self._published = False
        self._lock = Lock()

    @classmethod
    def declare(
        cls,
        graph: DependencyGraph,
        id: str,
        type: str,
        inputs: dict[str, Any] | None = None,
        depends_on: Iterable[Any] | None = None,
    ) -> ResourceNode:
        node = cls(id=id, type=type, inputs=inputs, depends_on=depends_on)
        graph.add_node(node)
        return node

    @property
    def parent(self) -> CompositeGroup | None:
        if self._parent is None:
            return None
        return self._parent()

    @parent.setter
    def parent(self, group: CompositeGroup | None) -> None:
        self._parent = weakref.ref(group) if group is not None else None

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    def output(self, name: str) -> OutputRef:
        return OutputRef(self.id, name)

    def __getitem__(self, name: str) -> OutputRef:
        return self.output(name)

    def cell(self, name: str) -> ValueCell:
        with self._lock:
            if name in self.outputs:
                return self.outputs[name]
            cell = ValueCell(name=f"{self.id}.{name}")
            self.outputs[name] = cell
            published = self._published
        if self.state in (NodeState.FAILED, NodeState.SKIPPED):
            cell.fail(self.error or ProvisionError(f"{self.id} failed"))
        elif published:
            cell.fail(_missing_output(self.id, name))
        return cell

    def references(self) -> list[Reference]:
        return list(find_references(self.inputs))

    def dependencies(self) -> list[str]:
        deps: list[str] = []
        for ref in self.references():
            for dep in ref.dependencies():
                if dep not in deps:
                    deps.append(dep)
        for dep in self.depends_on:
            if dep not in deps:
                deps.append(dep)
        return deps

    def input_snapshot(self) -> dict[str, Any]:
        """Inputs with every reference replaced by its resolved value.

        Raises:
            InputNotReadyError: A referenced output is still unresolved.
            UpstreamFailedError: A referenced output failed. When a
                derivation of a resolved output raised, `cause` is the
                InputError.
        """
        if self._graph is None:
            return dict(self.inputs)
        return resolve_value(self.inputs, self._graph)

    def publish_outputs(self, values: dict[str, Any]) -> None:
        with self._lock:
            if self._published:
                raise OutputAlreadyPublishedError(
                    f"Outputs of {self.id} are already published"
                )
            self._published = True
            for name in values:
                if name not in self.outputs:
                    self.outputs[name] = ValueCell(name=f"{self.id}.{name}")
            cells = dict(self.outputs)
        for name, cell in cells.items():
            if cell.is_terminal:
                continue
            if name in values:
                cell.resolve(values[name])
            else:
                cell.fail(_missing_output(self.id, name))
        self.state = NodeState.RESOLVED
        self.completion.resolve(self.id)

    def fail_outputs(
        self,
        error: BaseException,
        state: NodeState = NodeState.FAILED,
    ) -> None:
        with self._lock:
            if self._published:
                raise OutputAlreadyPublishedError(
                    f"Outputs of {self.id} are already published"
                )
            self._published = True
            cells = list(self.outputs.values())
            self.state = state
            self.error = error
        for cell in cells:
            if not cell.is_terminal:
                cell.fail(error)
        if not self.completion.is_terminal:
            self.completion.fail(error)

    def __repr__(self) -> str:
        return f"ResourceNode({self.id!r}, {self.type!r}, {self.state.value})"


def _missing_output(node_id: str, name: str) -> ProvisionError:
    return ProvisionError(
        f"{node_id} did not return output {name}", kind="MissingOutput"
    )


def _normalize_depends_on(depends_on: Iterable[Any] | None) -> list[str]:
    ids: list[str] = []
    for item in depends_on or []:
        if isinstance(item, str):
            id = item
        else:
            id = getattr(item, "id", None)
            if not isinstance(id, str):
                raise TypeError(f"Unsupported dependency {item!r}")
        if id not in ids:
            ids.append(id)
    return ids
