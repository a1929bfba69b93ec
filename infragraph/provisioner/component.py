from __future__ import annotations

from typing import Any

from infragraph.core import Component, ProvisionRequest, ProvisionResponse


class Provisioner(Component):
    """Turns a resolved resource node into real infrastructure.

    The bound provider owns the meaning of type tags.
    """

    def __init__(self, **kwargs: Any):
        super().__init__(**kwargs)

    def provision(self, request: ProvisionRequest) -> ProvisionResponse:
        return self._get_provider().provision(request)

    async def aprovision(
        self, request: ProvisionRequest
    ) -> ProvisionResponse:
        return await self._get_provider().aprovision(request)
