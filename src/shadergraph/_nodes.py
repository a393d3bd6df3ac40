"""Pins and node variants of a shader script."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum, auto
from typing import ClassVar

from ._catalog import FunctionSignature, FunctionType, Operator, OperatorType
from ._types import LiteralValue, ValueType

type NodeHandle = int


class PinDirection(StrEnum):
    """Direction of a pin relative to its node."""

    INPUT = auto()
    OUTPUT = auto()


class NodeKind(StrEnum):
    """Family of a node."""

    VARIABLE = auto()
    OPERATOR = auto()
    FUNCTION = auto()


class VariableKind(StrEnum):
    """Flavor of a node in the VARIABLE family."""

    INPUT = auto()  # Stage input (`in`)
    OUTPUT = auto()  # Stage output (`out`)
    CONSTANT = auto()
    UNIFORM = auto()
    PUSH_CONSTANT = auto()
    VERTEX_OUTPUT = auto()  # gl_Position


@dataclass(frozen=True, slots=True)
class Pin:
    """A typed connection point on a node.

    Pins are plain values: two pins are the same pin when they agree on node,
    direction and index. The declared type and name travel with the pin so
    callers can inspect it without going back to the script.

    Attributes:
        node: Handle of the owning node.
        direction: INPUT or OUTPUT.
        index: Position among the node's pins of the same direction.
        value_type: Declared type of the slot.
        name: Human-readable slot name.

    """

    node: NodeHandle
    direction: PinDirection
    index: int
    value_type: ValueType
    name: str

    @property
    def key(self) -> tuple[NodeHandle, PinDirection, int]:
        """Identity of the pin inside a script."""
        return (self.node, self.direction, self.index)

    def __str__(self) -> str:
        return f"{self.node}.{self.direction}[{self.index}]"


def _pins(
    handle: NodeHandle,
    direction: PinDirection,
    slots: tuple[tuple[str, ValueType], ...],
) -> tuple[Pin, ...]:
    return tuple(
        Pin(node=handle, direction=direction, index=i, value_type=value_type, name=name)
        for i, (name, value_type) in enumerate(slots)
    )


@dataclass(frozen=True, slots=True)
class _NodeBase:
    handle: NodeHandle

    kind: ClassVar[NodeKind]

    @property
    def input_slots(self) -> tuple[tuple[str, ValueType], ...]:
        return ()

    @property
    def output_slots(self) -> tuple[tuple[str, ValueType], ...]:
        return ()

    @property
    def input_pins(self) -> tuple[Pin, ...]:
        """Input pins in slot order."""
        return _pins(self.handle, PinDirection.INPUT, self.input_slots)

    @property
    def output_pins(self) -> tuple[Pin, ...]:
        """Output pins in slot order."""
        return _pins(self.handle, PinDirection.OUTPUT, self.output_slots)


@dataclass(frozen=True, slots=True)
class InputVariableNode(_NodeBase):
    """Stage input read from `location`."""

    value_type: ValueType
    location: int

    kind: ClassVar[NodeKind] = NodeKind.VARIABLE
    variable_kind: ClassVar[VariableKind] = VariableKind.INPUT

    @property
    def output_slots(self) -> tuple[tuple[str, ValueType], ...]:
        return (("value", self.value_type),)


@dataclass(frozen=True, slots=True)
class OutputVariableNode(_NodeBase):
    """Stage output written to `location`."""

    value_type: ValueType
    location: int

    kind: ClassVar[NodeKind] = NodeKind.VARIABLE
    variable_kind: ClassVar[VariableKind] = VariableKind.OUTPUT

    @property
    def input_slots(self) -> tuple[tuple[str, ValueType], ...]:
        return (("value", self.value_type),)


@dataclass(frozen=True, slots=True)
class ConstantNode(_NodeBase):
    """Immutable literal value."""

    value_type: ValueType
    value: LiteralValue

    kind: ClassVar[NodeKind] = NodeKind.VARIABLE
    variable_kind: ClassVar[VariableKind] = VariableKind.CONSTANT

    @property
    def output_slots(self) -> tuple[tuple[str, ValueType], ...]:
        return (("value", self.value_type),)


@dataclass(frozen=True, slots=True)
class UniformNode(_NodeBase):
    """Uniform value bound at (`set_index`, `binding`).

    Non-sampler uniforms sharing a set and binding are members of the same
    uniform block, in creation order. A sampler owns its binding. `resource`
    identifies the external buffer or texture and is never dereferenced.
    """

    value_type: ValueType
    set_index: int
    binding: int
    resource: str | None = None

    kind: ClassVar[NodeKind] = NodeKind.VARIABLE
    variable_kind: ClassVar[VariableKind] = VariableKind.UNIFORM

    @property
    def output_slots(self) -> tuple[tuple[str, ValueType], ...]:
        return (("value", self.value_type),)


@dataclass(frozen=True, slots=True)
class PushConstantNode(_NodeBase):
    """Member of the script's push-constant block."""

    value_type: ValueType

    kind: ClassVar[NodeKind] = NodeKind.VARIABLE
    variable_kind: ClassVar[VariableKind] = VariableKind.PUSH_CONSTANT

    @property
    def output_slots(self) -> tuple[tuple[str, ValueType], ...]:
        return (("value", self.value_type),)


@dataclass(frozen=True, slots=True)
class VertexOutputNode(_NodeBase):
    """Clip-space position output of a vertex script."""

    kind: ClassVar[NodeKind] = NodeKind.VARIABLE
    variable_kind: ClassVar[VariableKind] = VariableKind.VERTEX_OUTPUT

    @property
    def value_type(self) -> ValueType:
        return ValueType.VECTOR4F32

    @property
    def input_slots(self) -> tuple[tuple[str, ValueType], ...]:
        return (("position", ValueType.VECTOR4F32),)


@dataclass(frozen=True, slots=True)
class OperatorNode(_NodeBase):
    """Binary operator applied to a left and a right operand."""

    operator: Operator
    left_type: ValueType
    right_type: ValueType
    result_type: ValueType

    kind: ClassVar[NodeKind] = NodeKind.OPERATOR

    @property
    def operator_type(self) -> OperatorType:
        return self.operator.operator_type

    @property
    def input_slots(self) -> tuple[tuple[str, ValueType], ...]:
        return (("left", self.left_type), ("right", self.right_type))

    @property
    def output_slots(self) -> tuple[tuple[str, ValueType], ...]:
        return (("result", self.result_type),)


@dataclass(frozen=True, slots=True)
class FunctionNode(_NodeBase):
    """Call of a built-in function overload."""

    signature: FunctionSignature

    kind: ClassVar[NodeKind] = NodeKind.FUNCTION

    @property
    def function(self) -> FunctionType:
        return self.signature.function

    @property
    def input_slots(self) -> tuple[tuple[str, ValueType], ...]:
        return tuple(zip(self.signature.input_names, self.signature.inputs, strict=True))

    @property
    def output_slots(self) -> tuple[tuple[str, ValueType], ...]:
        return (("result", self.signature.output),)


type VariableNode = (
    InputVariableNode | OutputVariableNode | ConstantNode | UniformNode | PushConstantNode | VertexOutputNode
)
type Node = VariableNode | OperatorNode | FunctionNode

OUTPUT_NODE_TYPES = (OutputVariableNode, VertexOutputNode)
