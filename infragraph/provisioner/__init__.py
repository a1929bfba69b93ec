from infragraph.core import ProvisionRequest, ProvisionResponse

from ._models import RouteInfo
from .component import Provisioner

__all__ = [
    "ProvisionRequest",
    "ProvisionResponse",
    "Provisioner",
    "RouteInfo",
]
