__all__ = [
    "AlreadyResolvedError",
    "BaseError",
    "CancelledError",
    "CellError",
    "CycleDetectedError",
    "DanglingReferenceError",
    "DuplicateIdError",
    "GraphError",
    "GraphFrozenError",
    "InputError",
    "InputNotReadyError",
    "LoadError",
    "NotSupportedError",
    "OutputAlreadyPublishedError",
    "ProvisionError",
    "UpstreamFailedError",
]


class BaseError(Exception):
    kind: str = "Error"

    @property
    def message(self) -> str:
        return str(self)


class GraphError(BaseError):
    kind = "GraphError"


class DuplicateIdError(GraphError):
    kind = "DuplicateId"


class DanglingReferenceError(GraphError):
    kind = "DanglingReference"

    def __init__(self, node_id: str, missing: list[str]):
        self.node_id = node_id
        self.missing = missing
        super().__init__(
            f"{node_id} references unregistered ids: {', '.join(missing)}"
        )


class CycleDetectedError(GraphError):
    kind = "CycleDetected"

    def __init__(self, cycle: list[str]):
        self.cycle = cycle
        super().__init__(f"Dependency cycle: {' -> '.join(cycle)}")


class GraphFrozenError(GraphError):
    kind = "GraphFrozen"


class CellError(BaseError):
    kind = "CellError"


class AlreadyResolvedError(CellError):
    kind = "AlreadyResolved"


class InputNotReadyError(CellError):
    kind = "InputNotReady"


class UpstreamFailedError(CellError):
    kind = "UpstreamFailed"

    def __init__(self, message: str, cause: BaseException | None = None):
        self.cause = cause
        super().__init__(message)


class InputError(CellError):
    """A derivation of a resolved value raised."""

    kind = "InputError"

    def __init__(self, message: str, cause: BaseException | None = None):
        self.cause = cause
        super().__init__(message)


class OutputAlreadyPublishedError(CellError):
    kind = "OutputAlreadyPublished"


class ProvisionError(BaseError):
    """Failure reported by a provisioner.

    The kind is owned by the provider and passed through unchanged.
    """

    kind = "ProvisionError"

    def __init__(self, message: str, kind: str | None = None):
        if kind is not None:
            self.kind = kind
        super().__init__(message)


class CancelledError(BaseError):
    kind = "Cancelled"


class LoadError(BaseError):
    kind = "LoadError"


class NotSupportedError(BaseError):
    kind = "NotSupported"
