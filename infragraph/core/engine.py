"""
Composition engine.

Walks a dependency graph level by level, resolves each node's inputs from
upstream output cells, calls the provisioner and publishes the outputs.
Failures are isolated to the failing node's dependents. Nothing is rolled
back.
"""

from __future__ import annotations

__all__ = ["Engine"]

import asyncio
import threading
from typing import Any, Mapping

from ._async_helper import run_sync
from ._log_helper import get_logger
from ._models import (
    NodeFailure,
    NodeSkip,
    ProvisionRequest,
    ProvisionResponse,
    RunResult,
)
from .exceptions import (
    BaseError,
    CancelledError,
    CellError,
    InputError,
    InputNotReadyError,
    ProvisionError,
    UpstreamFailedError,
)
from .graph import DependencyGraph
from .node import NodeState, ResourceNode
from .reference import resolve_value

logger = get_logger(__name__)


class Engine:
    """Composition engine.

    Args:
        provisioner: Provisioner component or bare provider. Anything
            with an async `aprovision(request)` works.
        max_workers: Upper bound on provisioner calls in flight. None
            runs every node of a dependency level at once.
    """

    provisioner: Any
    max_workers: int | None

    def __init__(self, provisioner: Any, max_workers: int | None = None):
        if max_workers is not None and max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.provisioner = provisioner
        self.max_workers = max_workers

    def run(
        self,
        graph: DependencyGraph,
        cancel: threading.Event | None = None,
    ) -> RunResult:
        return run_sync(self.arun, graph, cancel)

    async def arun(
        self,
        graph: DependencyGraph,
        cancel: threading.Event | None = None,
    ) -> RunResult:
        """Provision every node of the graph.

        Raises:
            CycleDetectedError: Before any provisioner call.
        """
        levels = graph.depth_levels()
        requested = graph.requested_outputs()
        semaphore = (
            asyncio.Semaphore(self.max_workers) if self.max_workers else None
        )
        for depth, level in enumerate(levels):
            logger.debug(
                "Level %d: %s", depth, ", ".join(node.id for node in level)
            )
            await asyncio.gather(
                *(
                    self._process(
                        graph=graph,
                        node=node,
                        outputs=requested.get(node.id, []),
                        cancel=cancel,
                        semaphore=semaphore,
                    )
                    for node in level
                )
            )
        return self._collect(graph)

    async def _process(
        self,
        graph: DependencyGraph,
        node: ResourceNode,
        outputs: list[str],
        cancel: threading.Event | None,
        semaphore: asyncio.Semaphore | None,
    ) -> None:
        if node.is_terminal:
            logger.debug("%s is already %s", node.id, node.state.value)
            return
        if self._cancelled(cancel):
            self._skip(node, CancelledError(f"{node.id} was not started"))
            return
        failed = [
            dep
            for dep in graph.dependencies_of(node.id)
            if graph.nodes[dep].state in (NodeState.FAILED, NodeState.SKIPPED)
        ]
        if failed:
            self._skip(
                node,
                UpstreamFailedError(
                    f"{node.id} depends on {', '.join(failed)}, which did "
                    "not resolve"
                ),
            )
            return

        node.state = NodeState.RESOLVING
        try:
            inputs = node.input_snapshot()
        except UpstreamFailedError as e:
            # Every dependency resolved, so the failure is in one of this
            # node's own derived inputs.
            if isinstance(e.cause, InputError):
                self._fail(node, e.cause)
            else:
                self._skip(node, e)
            return
        except InputNotReadyError as e:
            self._fail(node, e)
            return

        request = ProvisionRequest(
            id=node.id,
            type=node.type,
            inputs=inputs,
            outputs=outputs,
        )
        if semaphore is None:
            await self._provision(node, request, cancel)
        else:
            async with semaphore:
                await self._provision(node, request, cancel)

    async def _provision(
        self,
        node: ResourceNode,
        request: ProvisionRequest,
        cancel: threading.Event | None,
    ) -> None:
        if self._cancelled(cancel):
            self._skip(node, CancelledError(f"{node.id} was not started"))
            return
        node.state = NodeState.PROVISIONING
        logger.debug("Provisioning %s (%s)", node.id, node.type)
        try:
            response = await self.provisioner.aprovision(request)
            outputs = _response_outputs(response)
        except BaseError as e:
            self._fail(node, e)
            return
        except Exception as e:
            logger.exception("Provider raised while provisioning %s", node.id)
            self._fail(
                node,
                ProvisionError(
                    f"{type(e).__name__}: {e}", kind="ProviderException"
                ),
            )
            return
        node.publish_outputs(outputs)
        logger.info("Resolved %s", node.id)

    def _fail(self, node: ResourceNode, error: BaseException) -> None:
        node.fail_outputs(error, state=NodeState.FAILED)
        logger.info("Failed %s: %s", node.id, error)

    def _skip(self, node: ResourceNode, error: BaseException) -> None:
        node.fail_outputs(error, state=NodeState.SKIPPED)
        logger.info("Skipped %s: %s", node.id, error)

    def _cancelled(self, cancel: threading.Event | None) -> bool:
        return cancel is not None and cancel.is_set()

    def _collect(self, graph: DependencyGraph) -> RunResult:
        result = RunResult()
        for node in graph.topological_order():
            if node.state == NodeState.RESOLVED:
                result.succeeded.append(node.id)
            elif node.state == NodeState.FAILED:
                result.failed.append(
                    NodeFailure(
                        id=node.id,
                        kind=_kind(node.error),
                        message=str(node.error),
                    )
                )
            elif node.state == NodeState.SKIPPED:
                result.skipped.append(
                    NodeSkip(
                        id=node.id,
                        reason=_kind(node.error),
                        message=str(node.error),
                    )
                )
        for name, value in graph.exports.items():
            try:
                result.exports[name] = resolve_value(value, graph)
            except CellError as e:
                logger.warning("Export %s is not available: %s", name, e)
                cause = getattr(e, "cause", None)
                error = cause if isinstance(cause, InputError) else e
                result.unresolved_exports.append(
                    NodeSkip(id=name, reason=_kind(error), message=str(error))
                )
        return result


def _response_outputs(response: Any) -> dict[str, Any]:
    if isinstance(response, ProvisionResponse):
        return response.outputs
    if response is None:
        return dict()
    if isinstance(response, Mapping):
        return dict(response)
    raise ProvisionError(
        f"Provider returned {type(response).__name__}, expected a mapping "
        "of outputs",
        kind="InvalidResponse",
    )


def _kind(error: BaseException | None) -> str:
    if isinstance(error, BaseError):
        return error.kind
    return type(error).__name__
