"""Error kinds raised or reported by the shader graph."""

from __future__ import annotations

from enum import StrEnum, auto
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ._nodes import Pin


class ErrorKind(StrEnum):
    """Discriminator carried by every ShaderGraphError."""

    INVALID_NODE_SPEC = auto()
    TYPE_MISMATCH = auto()
    CYCLE_DETECTED = auto()
    UNKNOWN_NODE = auto()
    UNKNOWN_PIN = auto()
    INVALID_DIRECTION = auto()
    UNBOUND_INPUT = auto()
    MISSING_OUTPUT = auto()
    INTERNAL_INVARIANT_VIOLATION = auto()


class ShaderGraphError(Exception):
    """Base class of all shader graph errors."""

    kind: ErrorKind

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InvalidNodeSpecError(ShaderGraphError):
    """Raised when node construction parameters are malformed."""

    kind = ErrorKind.INVALID_NODE_SPEC


class TypeMismatchError(ShaderGraphError):
    """Raised when a value type does not fit the slot it is wired into."""

    kind = ErrorKind.TYPE_MISMATCH

    def __init__(self, message: str, source: Pin | None = None, target: Pin | None = None) -> None:
        self.source = source
        self.target = target
        super().__init__(message)


class CycleDetectedError(ShaderGraphError):
    """Raised when an edge would close a cycle."""

    kind = ErrorKind.CYCLE_DETECTED

    def __init__(self, message: str, source: Pin, target: Pin) -> None:
        self.source = source
        self.target = target
        super().__init__(message)


class UnknownNodeError(ShaderGraphError, KeyError):
    """Raised when a node handle does not resolve in the script."""

    kind = ErrorKind.UNKNOWN_NODE

    def __init__(self, handle: int) -> None:
        self.handle = handle
        super().__init__(f"Unknown node handle: {handle}")

    def __str__(self) -> str:
        return self.message


class UnknownPinError(ShaderGraphError, KeyError):
    """Raised when a pin does not resolve on its node."""

    kind = ErrorKind.UNKNOWN_PIN

    def __str__(self) -> str:
        return self.message


class InvalidDirectionError(ShaderGraphError):
    """Raised when an edge is requested between pins of the wrong direction."""

    kind = ErrorKind.INVALID_DIRECTION


class UnboundInputError(ShaderGraphError):
    """Raised when a required input pin has neither an edge nor a default."""

    kind = ErrorKind.UNBOUND_INPUT

    def __init__(self, pin: Pin) -> None:
        self.pin = pin
        super().__init__(f"Input pin '{pin.name}' (#{pin.index}) of node {pin.node} is not bound")


class MissingOutputError(ShaderGraphError):
    """Raised when a script has no output variable to compile towards."""

    kind = ErrorKind.MISSING_OUTPUT


class InternalInvariantViolation(ShaderGraphError):  # noqa: N818
    """Raised when a graph invariant that mutations guarantee does not hold."""

    kind = ErrorKind.INTERNAL_INVARIANT_VIOLATION
