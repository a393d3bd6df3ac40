"""Closed catalog of operators and built-in functions.

Operators have two operands and derive their result type from the operand
types. Functions are overloaded: each (function, input types) pair is a
fixed signature with a declared return type.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum, auto
from typing import Self

from ._errors import InvalidNodeSpecError
from ._types import ValueType, common_type

_F = ValueType.FLOAT32
_V2 = ValueType.VECTOR2F32
_V3 = ValueType.VECTOR3F32
_V4 = ValueType.VECTOR4F32
_M4 = ValueType.MATRIX4F32


class OperatorType(StrEnum):
    """Family of an operator."""

    ARITHMETIC = auto()
    COMPARISON = auto()
    LOGICAL = auto()


class Operator(StrEnum):
    """Binary operators, tagged with their family, token and identifier prefix."""

    operator_type: OperatorType
    token: str
    prefix: str

    def __new__(cls, value: str, operator_type: OperatorType, token: str, prefix: str) -> Self:
        obj = str.__new__(cls, value)
        obj._value_ = value
        obj.operator_type = operator_type
        obj.token = token
        obj.prefix = prefix
        return obj

    ADD = "add", OperatorType.ARITHMETIC, "+", "add"
    SUB = "sub", OperatorType.ARITHMETIC, "-", "sub"
    MUL = "mul", OperatorType.ARITHMETIC, "*", "mul"
    DIV = "div", OperatorType.ARITHMETIC, "/", "div"
    EQUAL = "equal", OperatorType.COMPARISON, "==", "eq"
    NOT_EQUAL = "not_equal", OperatorType.COMPARISON, "!=", "ne"
    LESS = "less", OperatorType.COMPARISON, "<", "lt"
    LESS_EQUAL = "less_equal", OperatorType.COMPARISON, "<=", "le"
    GREATER = "greater", OperatorType.COMPARISON, ">", "gt"
    GREATER_EQUAL = "greater_equal", OperatorType.COMPARISON, ">=", "ge"
    AND = "and", OperatorType.LOGICAL, "&&", "and"
    OR = "or", OperatorType.LOGICAL, "||", "or"


_ORDERING = frozenset({Operator.LESS, Operator.LESS_EQUAL, Operator.GREATER, Operator.GREATER_EQUAL})


def operator_result_type(operator: Operator, left: ValueType, right: ValueType) -> ValueType:
    """Compute the result type of `left <operator> right`.

    Args:
        operator: The operator.
        left: Declared type of the left operand.
        right: Declared type of the right operand.

    Returns:
        The result type.

    Raises:
        InvalidNodeSpecError: If the operator is not applicable to the operands.

    """
    if operator == Operator.MUL and (left, right) == (_M4, _V4):
        return _V4

    common = common_type(left, right)
    if common is not None:
        match operator.operator_type:
            case OperatorType.ARITHMETIC:
                if common.is_numeric:
                    return common
            case OperatorType.COMPARISON:
                if operator in _ORDERING:
                    if common.is_numeric and common.is_scalar:
                        return ValueType.BOOL
                elif not common.is_sampler:
                    return ValueType.BOOL
            case OperatorType.LOGICAL:
                if common == ValueType.BOOL:
                    return ValueType.BOOL

    msg = f"Operator '{operator}' is not applicable to '{left}' and '{right}'"
    raise InvalidNodeSpecError(msg)


class FunctionType(StrEnum):
    """Built-in functions, tagged with their GLSL name."""

    glsl_name: str

    def __new__(cls, value: str, glsl_name: str) -> Self:
        obj = str.__new__(cls, value)
        obj._value_ = value
        obj.glsl_name = glsl_name
        return obj

    COS = "cos", "cos"
    SIN = "sin", "sin"
    TAN = "tan", "tan"
    MIN = "min", "min"
    MAX = "max", "max"
    DOT = "dot", "dot"
    CROSS = "cross", "cross"
    CREATE_VEC2 = "create_vec2", "vec2"
    CREATE_VEC3 = "create_vec3", "vec3"
    CREATE_VEC4 = "create_vec4", "vec4"
    TEXTURE_1D = "texture_1d", "texture"
    TEXTURE_2D = "texture_2d", "texture"
    TEXTURE_3D = "texture_3d", "texture"

    @property
    def is_constructor(self) -> bool:
        return self in (FunctionType.CREATE_VEC2, FunctionType.CREATE_VEC3, FunctionType.CREATE_VEC4)


_COMPONENT_NAMES = ("x", "y", "z", "w")


@dataclass(frozen=True, slots=True)
class FunctionSignature:
    """One overload of a built-in function.

    Attributes:
        function: The function identity.
        inputs: Declared types of the input slots, in order.
        output: Declared return type.

    """

    function: FunctionType
    inputs: tuple[ValueType, ...]
    output: ValueType

    @property
    def arity(self) -> int:
        return len(self.inputs)

    @property
    def input_names(self) -> tuple[str, ...]:
        if self.inputs and self.inputs[0].is_sampler:
            return ("sampler", "coordinates")
        return _COMPONENT_NAMES[: self.arity] if self.arity > 1 else ("value",)

    def __str__(self) -> str:
        args = ", ".join(self.inputs)
        return f"{self.function}({args}) -> {self.output}"


def _sig(function: FunctionType, output: ValueType, *inputs: ValueType) -> FunctionSignature:
    return FunctionSignature(function=function, inputs=inputs, output=output)


def _float_and_vectors(function: FunctionType, arity: int) -> list[FunctionSignature]:
    return [_sig(function, t, *([t] * arity)) for t in (_F, _V2, _V3, _V4)]


FUNCTION_SIGNATURES: dict[FunctionType, tuple[FunctionSignature, ...]] = {
    FunctionType.COS: tuple(_float_and_vectors(FunctionType.COS, 1)),
    FunctionType.SIN: tuple(_float_and_vectors(FunctionType.SIN, 1)),
    FunctionType.TAN: tuple(_float_and_vectors(FunctionType.TAN, 1)),
    FunctionType.MIN: tuple(_float_and_vectors(FunctionType.MIN, 2)),
    FunctionType.MAX: tuple(_float_and_vectors(FunctionType.MAX, 2)),
    FunctionType.DOT: (
        _sig(FunctionType.DOT, _F, _V2, _V2),
        _sig(FunctionType.DOT, _F, _V3, _V3),
        _sig(FunctionType.DOT, _F, _V4, _V4),
    ),
    FunctionType.CROSS: (_sig(FunctionType.CROSS, _V3, _V3, _V3),),
    FunctionType.CREATE_VEC2: (
        _sig(FunctionType.CREATE_VEC2, _V2, _F, _F),
        _sig(FunctionType.CREATE_VEC2, _V2, _V3),
        _sig(FunctionType.CREATE_VEC2, _V2, _V4),
    ),
    FunctionType.CREATE_VEC3: (
        _sig(FunctionType.CREATE_VEC3, _V3, _F, _F, _F),
        _sig(FunctionType.CREATE_VEC3, _V3, _V2, _F),
        _sig(FunctionType.CREATE_VEC3, _V3, _V4),
    ),
    FunctionType.CREATE_VEC4: (
        _sig(FunctionType.CREATE_VEC4, _V4, _F, _F, _F, _F),
        _sig(FunctionType.CREATE_VEC4, _V4, _V2, _F, _F),
        _sig(FunctionType.CREATE_VEC4, _V4, _V3, _F),
    ),
    FunctionType.TEXTURE_1D: (_sig(FunctionType.TEXTURE_1D, _V4, ValueType.SAMPLER1D, _F),),
    FunctionType.TEXTURE_2D: (_sig(FunctionType.TEXTURE_2D, _V4, ValueType.SAMPLER2D, _V2),),
    FunctionType.TEXTURE_3D: (_sig(FunctionType.TEXTURE_3D, _V4, ValueType.SAMPLER3D, _V3),),
}


def resolve_function(
    function: FunctionType | str,
    input_types: tuple[ValueType, ...] | None = None,
) -> FunctionSignature:
    """Look up the overload of `function` taking exactly `input_types`.

    Args:
        function: Function identity (member or its string value).
        input_types: Declared input types. May be omitted when the function
            has a single overload.

    Returns:
        The matching FunctionSignature.

    Raises:
        InvalidNodeSpecError: If the function is unknown, an input type is
            unknown, or no overload (or more than one, when `input_types` is
            omitted) matches.

    """
    try:
        function = FunctionType(function)
    except ValueError:
        msg = f"Unknown function: {function!r}"
        raise InvalidNodeSpecError(msg) from None

    overloads = FUNCTION_SIGNATURES[function]
    if input_types is None:
        if len(overloads) != 1:
            msg = f"Function '{function}' is overloaded, input types are required"
            raise InvalidNodeSpecError(msg)
        return overloads[0]

    try:
        input_types = tuple(ValueType(t) for t in input_types)
    except ValueError:
        msg = f"Unknown value type in {list(input_types)!r}"
        raise InvalidNodeSpecError(msg) from None
    for signature in overloads:
        if signature.inputs == input_types:
            return signature

    available = "; ".join(str(s) for s in overloads)
    msg = f"No overload of '{function}' takes ({', '.join(input_types)}). Available: {available}"
    raise InvalidNodeSpecError(msg)
