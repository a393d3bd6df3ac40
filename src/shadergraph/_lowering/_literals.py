"""GLSL spelling of literal values and implicit conversions."""

from shadergraph._errors import InternalInvariantViolation
from shadergraph._types import LiteralValue, ValueType

# Integers above this lose precision in a 32-bit float.
_EXACT_INTEGER_LIMIT = 2**24


def format_float(value: float) -> str:
    """Format a float for a GLSL source.

    Values that six decimals reproduce exactly keep the short spelling,
    with trailing zeros and the dot dropped. Anything else, including
    integers of 2**24 and above, is printed in its shortest round-trip form
    and always reads as a float literal.

    Examples:
        >>> format_float(4.0)
        '4'
        >>> format_float(2.1)
        '2.1'
        >>> format_float(1e-07)
        '1e-07'
        >>> format_float(1e20)
        '1e+20'

    """
    short = f"{value:f}".rstrip("0").rstrip(".")
    if float(short) == value and abs(value) < _EXACT_INTEGER_LIMIT:
        return short
    text = repr(value)
    if "." not in text and "e" not in text:
        text += ".0"
    return text


def format_literal(value_type: ValueType, value: LiteralValue) -> str:
    """Spell a validated literal as a GLSL expression."""
    match value_type:
        case ValueType.BOOL:
            return "true" if value else "false"
        case ValueType.INT32:
            return str(value)
        case ValueType.FLOAT32:
            return format_float(value)  # type: ignore[arg-type]
        case ValueType.VECTOR2F32 | ValueType.VECTOR3F32 | ValueType.VECTOR4F32 | ValueType.MATRIX4F32:
            components = ", ".join(format_float(c) for c in value)  # type: ignore[union-attr]
            return f"{value_type.glsl_name}({components})"
        case _:
            msg = f"Type '{value_type}' has no literal form"
            raise InternalInvariantViolation(msg)


def convert(expression: str, source: ValueType, target: ValueType) -> str:
    """Wrap `expression` so a `source` value reads as `target`.

    Only the widenings allowed by `is_compatible` reach this point.
    """
    if source == target:
        return expression
    if (source, target) == (ValueType.INT32, ValueType.FLOAT32):
        return f"float({expression})"
    msg = f"No conversion from '{source}' to '{target}'"
    raise InternalInvariantViolation(msg)
