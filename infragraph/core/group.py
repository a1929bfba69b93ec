from __future__ import annotations

__all__ = ["CompositeGroup"]

from typing import TYPE_CHECKING, Any

from .cell import ValueCell
from .reference import GroupOutputRef, Reference

if TYPE_CHECKING:
    from .graph import DependencyGraph


class CompositeGroup:
    """Named bundle of member nodes that exposes some of their outputs.

    Grouping only. Members keep their own lifecycle.
    """

    id: str
    member_ids: list[str]
    exposed_outputs: dict[str, Reference]

    _graph: DependencyGraph | None

    def __init__(
        self,
        id: str,
        member_ids: list[str],
        exposed_outputs: dict[str, Reference] | None = None,
    ):
        self.id = id
        self.member_ids = list(dict.fromkeys(member_ids))
        self.exposed_outputs = dict(exposed_outputs or {})
        self._graph = None

    def output(self, name: str) -> GroupOutputRef:
        if name not in self.exposed_outputs:
            raise KeyError(f"Group {self.id} does not expose {name}")
        return GroupOutputRef(
            group_id=self.id,
            name=name,
            target=self.exposed_outputs[name],
            member_ids=self.member_ids,
        )

    def __getitem__(self, name: str) -> GroupOutputRef:
        return self.output(name)

    def cell(self, name: str) -> ValueCell:
        if self._graph is None:
            raise RuntimeError(f"Group {self.id} is not registered")
        return self.output(name).cell(self._graph)

    def outputs(self) -> dict[str, Any]:
        """Resolved exposed outputs.

        Raises InputNotReadyError until every member has resolved.
        """
        return {name: self.cell(name).value for name in self.exposed_outputs}

    def __repr__(self) -> str:
        return f"CompositeGroup({self.id!r}, members={self.member_ids!r})"
