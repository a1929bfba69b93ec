from __future__ import annotations

from ._provider import Provider
from .exceptions import NotSupportedError


class Component:
    __provider__: Provider
    __handle__: str | None
    __type__: str

    def __init__(
        self,
        **kwargs,
    ):
        self.__handle__ = kwargs.pop("__handle__", None)
        self.__type__ = kwargs.pop("__type__", self.__class__.__module__)
        if "__provider__" in kwargs:
            self.__bind__(kwargs.pop("__provider__"))

    def __bind__(
        self,
        provider: Provider | dict | str | None,
    ) -> None:
        if provider is None:
            return
        if isinstance(provider, Provider):
            provider.__component__ = self
            self.__provider__ = provider
        else:
            if isinstance(provider, dict):
                provider = dict(provider)
                type = provider.pop("type")
                parameters = provider.pop("parameters", dict())
            elif isinstance(provider, str):
                type = provider
                parameters = dict()
            else:
                raise NotSupportedError(f"Unsupported provider {provider!r}")
            from ._loader import Loader

            module_name = self.__class__.__module__.rsplit(".", 1)[0]
            provider_path = Loader.get_provider_path(
                component_module=module_name,
                provider_type=type,
            )
            provider_instance = Loader.load_provider_instance(
                path=provider_path,
                parameters=parameters,
            )
            provider_instance.__type__ = type
            self.__bind__(provider=provider_instance)

    def __setup__(self) -> None:
        self._get_provider().__setup__()

    async def __asetup__(self) -> None:
        await self._get_provider().__asetup__()

    def __supports__(self, type: str) -> bool:
        return self._get_provider().__supports__(type)

    def _get_provider(self) -> Provider:
        if not hasattr(self, "__provider__"):
            raise NotSupportedError(
                f"{self.__class__.__name__} has no provider bound"
            )
        return self.__provider__
