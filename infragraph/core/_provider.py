from typing import Any

from ._async_helper import run_async, run_sync
from ._models import ProvisionRequest, ProvisionResponse
from .exceptions import NotSupportedError


class Provider:
    """Provisioning backend.

    Subclasses implement `provision`, `aprovision`, or both. The missing
    one falls back to the other through a worker thread or the shared
    background loop.
    """

    __component__: Any
    __handle__: str | None
    __type__: str

    def __init__(self, **kwargs):
        self.__handle__ = kwargs.pop("__handle__", None)
        self.__type__ = kwargs.pop("__type__", self.__class__.__module__)
        for key, value in kwargs.items():
            setattr(self, key, value)

    def __setup__(self) -> None:
        pass

    async def __asetup__(self) -> None:
        await run_async(func=self.__setup__)

    def __supports__(self, type: str) -> bool:
        return True

    def provision(self, request: ProvisionRequest) -> ProvisionResponse:
        if type(self).aprovision is not Provider.aprovision:
            self.__setup__()
            return run_sync(self.aprovision, request)
        raise NotSupportedError(
            f"{self.__class__.__name__} does not implement provision"
        )

    async def aprovision(self, request: ProvisionRequest) -> ProvisionResponse:
        if type(self).provision is not Provider.provision:
            await self.__asetup__()
            return await run_async(self.provision, request)
        raise NotSupportedError(
            f"{self.__class__.__name__} does not implement aprovision"
        )
