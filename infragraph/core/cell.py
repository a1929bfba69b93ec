"""
Single-assignment value cells.
"""

from __future__ import annotations

__all__ = ["CellState", "ValueCell"]

from enum import Enum
from threading import Lock
from typing import Any, Callable, Iterable

from .exceptions import (
    AlreadyResolvedError,
    CellError,
    InputError,
    InputNotReadyError,
    UpstreamFailedError,
)

Subscriber = Callable[["ValueCell"], None]


class CellState(str, Enum):
    UNRESOLVED = "unresolved"
    RESOLVED = "resolved"
    FAILED = "failed"


class ValueCell:
    """Container that transitions exactly once, to a value or an error.

    Subscribers are called synchronously, in registration order, with the
    cell itself once it is terminal.
    """

    name: str | None
    _state: CellState
    _value: Any
    _error: BaseException | None
    _subscribers: list[Subscriber]
    _lock: Lock

    def __init__(self, name: str | None = None):
        self.name = name
        self._state = CellState.UNRESOLVED
        self._value = None
        self._error = None
        self._subscribers = []
        self._lock = Lock()

    @staticmethod
    def of(value: Any, name: str | None = None) -> ValueCell:
        cell = ValueCell(name=name)
        cell.resolve(value)
        return cell

    @property
    def state(self) -> CellState:
        return self._state

    @property
    def is_resolved(self) -> bool:
        return self._state == CellState.RESOLVED

    @property
    def is_failed(self) -> bool:
        return self._state == CellState.FAILED

    @property
    def is_terminal(self) -> bool:
        return self._state != CellState.UNRESOLVED

    @property
    def value(self) -> Any:
        if self._state == CellState.RESOLVED:
            return self._value
        if self._state == CellState.FAILED:
            raise UpstreamFailedError(
                f"{self._label()} failed: {self._error}", cause=self._error
            )
        raise InputNotReadyError(f"{self._label()} is not resolved")

    @property
    def error(self) -> BaseException | None:
        return self._error

    def resolve(self, value: Any) -> None:
        self._transition(CellState.RESOLVED, value=value)

    def fail(self, error: BaseException) -> None:
        self._transition(CellState.FAILED, error=error)

    def subscribe(self, callback: Subscriber) -> None:
        with self._lock:
            if self._state == CellState.UNRESOLVED:
                self._subscribers.append(callback)
                return
        callback(self)

    def derive(self, fn: Callable[[Any], Any]) -> ValueCell:
        derived = ValueCell(
            name=f"{self.name}:derived" if self.name else None
        )

        def on_terminal(source: ValueCell) -> None:
            if source.is_failed:
                derived.fail(source._error)  # type: ignore[arg-type]
                return
            try:
                result = fn(source._value)
            except CellError as e:
                derived.fail(e)
                return
            except Exception as e:
                derived.fail(
                    InputError(
                        f"{derived._label()} raised "
                        f"{type(e).__name__}: {e}",
                        cause=e,
                    )
                )
                return
            derived.resolve(result)

        self.subscribe(on_terminal)
        return derived

    @staticmethod
    def gather(cells: Iterable[ValueCell], name: str | None = None) -> ValueCell:
        sources = list(cells)
        gathered = ValueCell(name=name)
        if not sources:
            gathered.resolve([])
            return gathered
        remaining = [len(sources)]
        lock = Lock()

        def on_terminal(source: ValueCell) -> None:
            if source.is_failed:
                with lock:
                    if gathered.is_terminal:
                        return
                    gathered.fail(source._error)  # type: ignore[arg-type]
                return
            with lock:
                remaining[0] -= 1
                if remaining[0] > 0 or gathered.is_terminal:
                    return
                gathered.resolve([s._value for s in sources])

        for source in sources:
            source.subscribe(on_terminal)
        return gathered

    def _transition(
        self,
        state: CellState,
        value: Any = None,
        error: BaseException | None = None,
    ) -> None:
        with self._lock:
            if self._state != CellState.UNRESOLVED:
                raise AlreadyResolvedError(
                    f"{self._label()} is already {self._state.value}"
                )
            self._value = value
            self._error = error
            self._state = state
            subscribers = self._subscribers
            self._subscribers = []
        for callback in subscribers:
            callback(self)

    def _label(self) -> str:
        return f"Cell {self.name}" if self.name else "Cell"

    def __repr__(self) -> str:
        if self._state == CellState.RESOLVED:
            return f"ValueCell({self.name!r}, resolved={self._value!r})"
        if self._state == CellState.FAILED:
            return f"ValueCell({self.name!r}, failed={self._error!r})"
        return f"ValueCell({self.name!r}, unresolved)"
