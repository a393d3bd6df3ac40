"""Output of the lowering pass."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum, auto
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from shadergraph._errors import ShaderGraphError
    from shadergraph._nodes import NodeHandle
    from shadergraph._script import ShaderStage
    from shadergraph._types import ValueType


class InterfaceKind(StrEnum):
    """Category of a variable declared outside `main()`."""

    INPUT = auto()
    OUTPUT = auto()
    UNIFORM = auto()  # Member of a uniform block
    SAMPLER = auto()
    PUSH_CONSTANT = auto()


@dataclass(frozen=True, slots=True)
class Binding:
    """One local variable assigned inside `main()`.

    Attributes:
        identifier: Name of the local variable.
        value_type: Declared type of the variable.
        expression: Right-hand side, referring only to identifiers bound
            earlier or to interface variables.
        node: Handle of the node this binding was lowered from.

    """

    identifier: str
    value_type: ValueType
    expression: str
    node: NodeHandle


@dataclass(frozen=True, slots=True)
class OutputAssignment:
    """Write of an expression to a stage output or to `gl_Position`."""

    target: str
    value_type: ValueType
    expression: str
    node: NodeHandle


@dataclass(frozen=True, slots=True)
class InterfaceVariable:
    """A variable declared outside `main()`, with its slot metadata.

    `identifier` is the expression consumers use to read (or, for outputs,
    write) the variable: `in_0`, `out_1`, `sampler_0`, `ubo_0.vec4_0` or
    `pc.float_0`. Only the fields meaningful for `kind` are set.

    Attributes:
        kind: Category of the declaration.
        identifier: Name used inside `main()`.
        value_type: Declared type.
        node: Handle of the node it was lowered from.
        location: Location of a stage input or output.
        set_index: Descriptor set of a uniform or sampler.
        binding: Binding of a uniform or sampler.
        block: Instance name of the enclosing block (`ubo_0`, `pc`).
        member: Member name inside the enclosing block.
        offset: Byte offset inside the push-constant block.
        resource: Opaque identifier of the external resource.

    """

    kind: InterfaceKind
    identifier: str
    value_type: ValueType
    node: NodeHandle
    location: int | None = None
    set_index: int | None = None
    binding: int | None = None
    block: str | None = None
    member: str | None = None
    offset: int | None = None
    resource: str | None = None


@dataclass(frozen=True, slots=True)
class LoweringResult:
    """Result of lowering a script.

    This is an immutable data structure. When `error` is set, lowering
    stopped at the first violation and every other field is empty: a result
    never carries partial output.

    Attributes:
        stage: Stage of the lowered script.
        bindings: Local variables in emission order.
        assignments: Writes to outputs, in emission order.
        inputs: Stage inputs by location.
        outputs: Stage outputs by location (`gl_Position` is not declared).
        uniforms: Uniform block members and samplers, by set then binding.
        push_constants: Push-constant members by offset.
        error: The validation or type error that stopped lowering.

    """

    stage: ShaderStage
    bindings: tuple[Binding, ...] = ()
    assignments: tuple[OutputAssignment, ...] = ()
    inputs: tuple[InterfaceVariable, ...] = ()
    outputs: tuple[InterfaceVariable, ...] = ()
    uniforms: tuple[InterfaceVariable, ...] = ()
    push_constants: tuple[InterfaceVariable, ...] = ()
    error: ShaderGraphError | None = None

    @property
    def success(self) -> bool:
        """Check if lowering completed without errors."""
        return self.error is None

    def raise_for_error(self) -> None:
        """Raise the carried error, if any."""
        if self.error is not None:
            raise self.error
