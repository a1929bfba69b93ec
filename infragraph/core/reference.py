"""
Symbolic references between resource nodes.

A reference names an output of another node. It is stored in a node's
inputs at declaration time and replaced by the resolved value when the
node is provisioned.
"""

from __future__ import annotations

__all__ = [
    "DerivedRef",
    "GroupOutputRef",
    "Interpolation",
    "OutputRef",
    "Reference",
    "find_references",
    "interpolate",
    "resolve_value",
]

from typing import TYPE_CHECKING, Any, Callable, Iterator

from .cell import ValueCell

if TYPE_CHECKING:
    from .graph import DependencyGraph


class Reference:
    def dependencies(self) -> list[str]:
        raise NotImplementedError

    def cell(self, graph: DependencyGraph) -> ValueCell:
        raise NotImplementedError

    def output_refs(self) -> list[OutputRef]:
        raise NotImplementedError

    def apply(self, fn: Callable[[Any], Any]) -> DerivedRef:
        return DerivedRef(source=self, fn=fn)


class OutputRef(Reference):
    node_id: str
    output: str

    def __init__(self, node_id: str, output: str):
        self.node_id = node_id
        self.output = output

    def dependencies(self) -> list[str]:
        return [self.node_id]

    def cell(self, graph: DependencyGraph) -> ValueCell:
        return graph.get_node(self.node_id).cell(self.output)

    def output_refs(self) -> list[OutputRef]:
        return [self]

    def __eq__(self, other: object) -> bool:
        return (
            isinstance(other, OutputRef)
            and other.node_id == self.node_id
            and other.output == self.output
        )

    def __hash__(self) -> int:
        return hash((self.node_id, self.output))

    def __str__(self) -> str:
        return f"${{{self.node_id}.{self.output}}}"

    def __repr__(self) -> str:
        return f"OutputRef({self.node_id!r}, {self.output!r})"


class DerivedRef(Reference):
    source: Reference
    fn: Callable[[Any], Any]

    def __init__(self, source: Reference, fn: Callable[[Any], Any]):
        self.source = source
        self.fn = fn

    def dependencies(self) -> list[str]:
        return self.source.dependencies()

    def cell(self, graph: DependencyGraph) -> ValueCell:
        return self.source.cell(graph).derive(self.fn)

    def output_refs(self) -> list[OutputRef]:
        return self.source.output_refs()

    def __repr__(self) -> str:
        return f"DerivedRef({self.source!r})"


class Interpolation(Reference):
    """String template filled in from references and literals.

    Positional and keyword arguments follow `str.format`.
    """

    template: str
    args: tuple[Any, ...]
    kwargs: dict[str, Any]

    def __init__(self, template: str, *args: Any, **kwargs: Any):
        self.template = template
        self.args = args
        self.kwargs = kwargs

    def dependencies(self) -> list[str]:
        deps: list[str] = []
        for value in [*self.args, *self.kwargs.values()]:
            for ref in find_references(value):
                deps.extend(ref.dependencies())
        return deps

    def cell(self, graph: DependencyGraph) -> ValueCell:
        keys = list(self.kwargs.keys())
        values = [*self.args, *self.kwargs.values()]
        cells = [_to_cell(value, graph) for value in values]
        count = len(self.args)

        def format(resolved: list[Any]) -> str:
            return self.template.format(
                *resolved[:count],
                **dict(zip(keys, resolved[count:])),
            )

        return ValueCell.gather(cells).derive(format)

    def output_refs(self) -> list[OutputRef]:
        refs: list[OutputRef] = []
        for value in [*self.args, *self.kwargs.values()]:
            for ref in find_references(value):
                refs.extend(ref.output_refs())
        return refs

    def __repr__(self) -> str:
        return f"Interpolation({self.template!r})"


class GroupOutputRef(Reference):
    """Output exposed by a composite group.

    Readable only once every member of the group has resolved.
    """

    group_id: str
    name: str
    target: Reference
    member_ids: list[str]

    def __init__(
        self,
        group_id: str,
        name: str,
        target: Reference,
        member_ids: list[str],
    ):
        self.group_id = group_id
        self.name = name
        self.target = target
        self.member_ids = list(member_ids)

    def dependencies(self) -> list[str]:
        deps = list(self.member_ids)
        for dep in self.target.dependencies():
            if dep not in deps:
                deps.append(dep)
        return deps

    def cell(self, graph: DependencyGraph) -> ValueCell:
        completions = [
            graph.get_node(member_id).completion
            for member_id in self.member_ids
        ]
        target = self.target.cell(graph)
        return ValueCell.gather(completions, name=self.name).derive(
            lambda _: target.value
        )

    def output_refs(self) -> list[OutputRef]:
        return self.target.output_refs()

    def __str__(self) -> str:
        return f"${{{self.group_id}.{self.name}}}"

    def __repr__(self) -> str:
        return f"GroupOutputRef({self.group_id!r}, {self.name!r})"


def interpolate(template: str, *args: Any, **kwargs: Any) -> Interpolation:
    return Interpolation(template, *args, **kwargs)


def find_references(value: Any) -> Iterator[Reference]:
    if isinstance(value, Reference):
        yield value
    elif isinstance(value, dict):
        for item in value.values():
            yield from find_references(item)
    elif isinstance(value, (list, tuple)):
        for item in value:
            yield from find_references(item)


def resolve_value(value: Any, graph: DependencyGraph) -> Any:
    if isinstance(value, Reference):
        return value.cell(graph).value
    elif isinstance(value, dict):
        return {k: resolve_value(v, graph) for k, v in value.items()}
    elif isinstance(value, list):
        return [resolve_value(item, graph) for item in value]
    elif isinstance(value, tuple):
        return tuple(resolve_value(item, graph) for item in value)
    return value


def _to_cell(value: Any, graph: DependencyGraph) -> ValueCell:
    if isinstance(value, Reference):
        return value.cell(graph)
    return ValueCell.of(resolve_value(value, graph))
