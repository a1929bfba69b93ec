from ._component import Component
from ._loader import Loader
from ._log_helper import get_logger, warn
from ._models import (
    NodeFailure,
    NodeSkip,
    ProvisionRequest,
    ProvisionResponse,
    RunResult,
)
from ._provider import Provider
from ._type_converter import TypeConverter
from .cell import CellState, ValueCell
from .data_model import ConfigModel, DataModel, DataModelField
from .engine import Engine
from .graph import DependencyGraph
from .group import CompositeGroup
from .node import NodeState, ResourceNode
from .reference import (
    DerivedRef,
    GroupOutputRef,
    Interpolation,
    OutputRef,
    Reference,
    interpolate,
)

__all__ = [
    "CellState",
    "Component",
    "CompositeGroup",
    "ConfigModel",
    "DataModel",
    "DataModelField",
    "DependencyGraph",
    "DerivedRef",
    "Engine",
    "GroupOutputRef",
    "Interpolation",
    "Loader",
    "NodeFailure",
    "NodeSkip",
    "NodeState",
    "OutputRef",
    "Provider",
    "ProvisionRequest",
    "ProvisionResponse",
    "Reference",
    "ResourceNode",
    "RunResult",
    "TypeConverter",
    "ValueCell",
    "get_logger",
    "interpolate",
    "warn",
]
