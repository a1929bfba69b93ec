from typing import Any

from infragraph.core import DataModel


class RouteInfo(DataModel):
    """Routing entry.

    Attributes:
        prefix: Type tag prefix matched by this route.
        provider: Provider instance, provider type name, or
            {"type": ..., "parameters": ...} dict.
    """

    prefix: str
    provider: Any
