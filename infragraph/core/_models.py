from __future__ import annotations

from typing import Any

from .data_model import DataModel


class ProvisionRequest(DataModel):
    """Provision request.

    Attributes:
        id: Node id.
        type: Node type tag.
        inputs: Inputs with every reference resolved.
        outputs: Output names other nodes or exports read from
            this node.
    """

    id: str
    type: str
    inputs: dict[str, Any] = dict()
    outputs: list[str] = []


class ProvisionResponse(DataModel):
    """Provision response.

    Attributes:
        outputs: Output values published on the node.
    """

    outputs: dict[str, Any] = dict()


class NodeFailure(DataModel):
    id: str
    kind: str
    message: str


class NodeSkip(DataModel):
    id: str
    reason: str
    message: str


class RunResult(DataModel):
    """Aggregate result of an engine run.

    Attributes:
        succeeded: Ids of resolved nodes, in topological order.
        failed: Nodes whose provisioner call failed.
        skipped: Nodes never provisioned, because of an upstream
            failure or cancellation.
        exports: Resolved stack exports.
        unresolved_exports: Exports that could not be resolved, keyed
            by export name in `id`.
    """

    succeeded: list[str] = []
    failed: list[NodeFailure] = []
    skipped: list[NodeSkip] = []
    exports: dict[str, Any] = dict()
    unresolved_exports: list[NodeSkip] = []

    @property
    def ok(self) -> bool:
        return (
            not self.failed
            and not self.skipped
            and not self.unresolved_exports
        )

    def failed_ids(self) -> list[str]:
        return [item.id for item in self.failed]

    def skipped_ids(self) -> list[str]:
        return [item.id for item in self.skipped]
