"""
Preview backend.

Creates nothing. Every output a dependent reads is returned as a
placeholder, so a whole graph can be walked before anything exists.
"""

from __future__ import annotations

__all__ = ["DryRun"]

from threading import Lock
from typing import Any

from infragraph.core import Provider, ProvisionRequest, ProvisionResponse


class DryRun(Provider):
    outputs: list[str]
    echo_inputs: bool

    planned: list[ProvisionRequest]
    _lock: Lock

    def __init__(
        self,
        outputs: list[str] | None = None,
        echo_inputs: bool = True,
        **kwargs,
    ):
        """Initialize.

        Args:
            outputs:
                Output names returned for every node, in addition to
                the ones the graph references.
            echo_inputs:
                Return the inputs as outputs.
        """
        super().__init__(**kwargs)
        self.outputs = list(outputs or ["id", "name"])
        self.echo_inputs = echo_inputs
        self.planned = list()
        self._lock = Lock()

    def provision(self, request: ProvisionRequest) -> ProvisionResponse:
        with self._lock:
            self.planned.append(request)
        outputs: dict[str, Any] = (
            dict(request.inputs) if self.echo_inputs else dict()
        )
        for name in [*self.outputs, *request.outputs]:
            if name not in outputs:
                outputs[name] = f"<computed:{request.id}.{name}>"
        return ProvisionResponse(outputs=outputs)
