from __future__ import annotations

__all__ = ["Routing"]

from typing import Any

from infragraph.core import (
    Loader,
    Provider,
    ProvisionRequest,
    ProvisionResponse,
    warn,
)
from infragraph.core.exceptions import NotSupportedError

from .._models import RouteInfo

PROVISIONER_MODULE = "infragraph.provisioner"


class Routing(Provider):
    """Dispatches each node to a child provider by type tag prefix.

    The longest matching prefix wins. Nodes with no matching route go to
    the default provider, or fail as not supported.
    """

    routes: list[RouteInfo]
    default: Provider | None

    _provider_map: dict[str, Provider]

    def __init__(
        self,
        routes: list[RouteInfo],
        default: Any = None,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.routes = [
            r if isinstance(r, RouteInfo) else RouteInfo.from_dict(r)
            for r in routes
        ]
        self.default = (
            _load_provider(default) if default is not None else None
        )
        self._init_provider_map()

    def _init_provider_map(self):
        self._provider_map = {
            route.prefix: _load_provider(route.provider)
            for route in self.routes
        }

    def get_route(self, type: str) -> Provider:
        matches = [p for p in self._provider_map if type.startswith(p)]
        if matches:
            return self._provider_map[max(matches, key=len)]
        if self.default is None:
            raise NotSupportedError(f"No provider routes type {type}")
        warn("No route for %s. Falling back to the default provider", type)
        return self.default

    def __supports__(self, type: str) -> bool:
        try:
            return self.get_route(type).__supports__(type)
        except NotSupportedError:
            return False

    def provision(self, request: ProvisionRequest) -> ProvisionResponse:
        return self.get_route(request.type).provision(request)

    async def aprovision(
        self, request: ProvisionRequest
    ) -> ProvisionResponse:
        return await self.get_route(request.type).aprovision(request)


def _load_provider(provider: Any) -> Provider:
    if isinstance(provider, Provider):
        return provider
    if isinstance(provider, str):
        type, parameters = provider, dict()
    elif isinstance(provider, dict):
        type = provider["type"]
        parameters = provider.get("parameters", dict())
    else:
        raise NotSupportedError(f"Unsupported provider {provider!r}")
    instance = Loader.load_provider_instance(
        path=Loader.get_provider_path(
            component_module=PROVISIONER_MODULE,
            provider_type=type,
        ),
        parameters=parameters,
    )
    instance.__type__ = type
    return instance
