"""Value types of the shader graph and their compatibility rules."""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Any, Self

from pydantic import Field, StrictBool, StrictFloat, StrictInt, TypeAdapter, ValidationError

from ._errors import InvalidNodeSpecError

type LiteralValue = bool | int | float | tuple[float, ...]


class ComponentKind(StrEnum):
    """Kind of the scalar components making up a value type."""

    BOOL = "bool"
    INT = "int"
    FLOAT = "float"
    SAMPLER = "sampler"


class ValueType(StrEnum):
    """Closed set of value types flowing through pins.

    Each member carries its GLSL spelling, its component kind and
    its component count.
    """

    glsl_name: str
    component_kind: ComponentKind
    components: int

    def __new__(cls, value: str, glsl_name: str, component_kind: ComponentKind, components: int) -> Self:
        obj = str.__new__(cls, value)
        obj._value_ = value
        obj.glsl_name = glsl_name
        obj.component_kind = component_kind
        obj.components = components
        return obj

    BOOL = "bool", "bool", ComponentKind.BOOL, 1
    INT32 = "int32", "int", ComponentKind.INT, 1
    FLOAT32 = "float32", "float", ComponentKind.FLOAT, 1
    VECTOR2F32 = "vector2f32", "vec2", ComponentKind.FLOAT, 2
    VECTOR3F32 = "vector3f32", "vec3", ComponentKind.FLOAT, 3
    VECTOR4F32 = "vector4f32", "vec4", ComponentKind.FLOAT, 4
    MATRIX4F32 = "matrix4f32", "mat4", ComponentKind.FLOAT, 16
    SAMPLER1D = "sampler1d", "sampler1D", ComponentKind.SAMPLER, 1
    SAMPLER2D = "sampler2d", "sampler2D", ComponentKind.SAMPLER, 1
    SAMPLER3D = "sampler3d", "sampler3D", ComponentKind.SAMPLER, 1

    @property
    def is_scalar(self) -> bool:
        """Whether the type is a single bool, int or float."""
        return self.components == 1 and self.component_kind != ComponentKind.SAMPLER

    @property
    def is_numeric(self) -> bool:
        """Whether arithmetic is defined on the type."""
        return self.component_kind in (ComponentKind.INT, ComponentKind.FLOAT)

    @property
    def is_sampler(self) -> bool:
        return self.component_kind == ComponentKind.SAMPLER

    @property
    def byte_size(self) -> int:
        """Size in bytes inside a std140 block. Samplers have no size."""
        if self.is_sampler:
            return 0
        return 4 * self.components


# Closed coercion table: (source, target) pairs allowed besides identity.
_WIDENINGS: frozenset[tuple[ValueType, ValueType]] = frozenset(
    {
        (ValueType.INT32, ValueType.FLOAT32),
    },
)


def is_compatible(source: ValueType, target: ValueType) -> bool:
    """Check whether a value of type `source` may flow into a slot of type `target`.

    The check is directional. Identity is always compatible; the only
    widening is INT32 -> FLOAT32. Vectors, matrices and samplers require an
    exact match and scalars are never broadcast into vectors.

    Examples:
        >>> is_compatible(ValueType.INT32, ValueType.FLOAT32)
        True
        >>> is_compatible(ValueType.FLOAT32, ValueType.INT32)
        False

    """
    return source == target or (source, target) in _WIDENINGS


def common_type(a: ValueType, b: ValueType) -> ValueType | None:
    """Return the type both operands can be converted to, or None."""
    if is_compatible(a, b):
        return b
    if is_compatible(b, a):
        return a
    return None


# Largest finite IEEE 754 single-precision value.
FLOAT32_MAX = 3.4028234663852886e38

_FiniteFloat = (
    Annotated[StrictFloat, Field(allow_inf_nan=False, ge=-FLOAT32_MAX, le=FLOAT32_MAX)]
    | Annotated[StrictInt, Field(ge=-int(FLOAT32_MAX), le=int(FLOAT32_MAX))]
)


def _vector_adapter(length: int) -> TypeAdapter[Any]:
    return TypeAdapter(Annotated[tuple[_FiniteFloat, ...], Field(min_length=length, max_length=length)])


_LITERAL_ADAPTERS: dict[ValueType, TypeAdapter[Any]] = {
    ValueType.BOOL: TypeAdapter(StrictBool),
    ValueType.INT32: TypeAdapter(Annotated[StrictInt, Field(ge=-(2**31), le=2**31 - 1)]),
    ValueType.FLOAT32: TypeAdapter(_FiniteFloat),
    ValueType.VECTOR2F32: _vector_adapter(2),
    ValueType.VECTOR3F32: _vector_adapter(3),
    ValueType.VECTOR4F32: _vector_adapter(4),
    ValueType.MATRIX4F32: _vector_adapter(16),
}


def coerce_literal(value_type: ValueType, value: object) -> LiteralValue:
    """Validate and normalize a literal for the given value type.

    Args:
        value_type: The declared type of the constant or pin.
        value: The raw value (Python or TOML data).

    Returns:
        `bool` for BOOL, `int` for INT32, `float` for FLOAT32 and a tuple of
        floats for vectors and matrices (matrices are 16 column-major floats).

    Raises:
        InvalidNodeSpecError: If the value does not fit the type, or the type
            has no literal form (samplers).

    """
    adapter = _LITERAL_ADAPTERS.get(value_type)
    if adapter is None:
        msg = f"Type '{value_type}' has no literal form"
        raise InvalidNodeSpecError(msg)
    try:
        validated = adapter.validate_python(value)
    except ValidationError as e:
        msg = f"Invalid literal {value!r} for type '{value_type}': {e.errors()[0]['msg']}"
        raise InvalidNodeSpecError(msg) from e

    if value_type in (ValueType.BOOL, ValueType.INT32):
        return validated
    if value_type == ValueType.FLOAT32:
        return float(validated)
    return tuple(float(component) for component in validated)
