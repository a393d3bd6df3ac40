"""Tests for the operator and function catalog."""

import pytest

from shadergraph._catalog import (
    FUNCTION_SIGNATURES,
    FunctionType,
    Operator,
    OperatorType,
    operator_result_type,
    resolve_function,
)
from shadergraph._errors import InvalidNodeSpecError
from shadergraph._types import ValueType


class TestOperatorResultType:
    """Tests for operator_result_type."""

    def test_arithmetic_keeps_operand_type(self) -> None:
        result = operator_result_type(Operator.ADD, ValueType.VECTOR4F32, ValueType.VECTOR4F32)
        assert result == ValueType.VECTOR4F32

    def test_arithmetic_widens_int(self) -> None:
        assert operator_result_type(Operator.MUL, ValueType.INT32, ValueType.FLOAT32) == ValueType.FLOAT32

    def test_matrix_times_vector(self) -> None:
        result = operator_result_type(Operator.MUL, ValueType.MATRIX4F32, ValueType.VECTOR4F32)
        assert result == ValueType.VECTOR4F32

    def test_no_scalar_vector_broadcast(self) -> None:
        with pytest.raises(InvalidNodeSpecError):
            operator_result_type(Operator.MUL, ValueType.FLOAT32, ValueType.VECTOR3F32)

    def test_arithmetic_rejects_bool(self) -> None:
        with pytest.raises(InvalidNodeSpecError):
            operator_result_type(Operator.ADD, ValueType.BOOL, ValueType.BOOL)

    def test_comparison_returns_bool(self) -> None:
        assert operator_result_type(Operator.LESS, ValueType.INT32, ValueType.FLOAT32) == ValueType.BOOL
        assert operator_result_type(Operator.EQUAL, ValueType.VECTOR2F32, ValueType.VECTOR2F32) == ValueType.BOOL

    def test_ordering_needs_scalars(self) -> None:
        with pytest.raises(InvalidNodeSpecError):
            operator_result_type(Operator.GREATER, ValueType.VECTOR2F32, ValueType.VECTOR2F32)

    def test_equality_rejects_samplers(self) -> None:
        with pytest.raises(InvalidNodeSpecError):
            operator_result_type(Operator.EQUAL, ValueType.SAMPLER2D, ValueType.SAMPLER2D)

    def test_logical_only_on_bool(self) -> None:
        assert operator_result_type(Operator.AND, ValueType.BOOL, ValueType.BOOL) == ValueType.BOOL
        with pytest.raises(InvalidNodeSpecError):
            operator_result_type(Operator.OR, ValueType.INT32, ValueType.INT32)

    def test_operator_metadata(self) -> None:
        assert Operator.SUB.token == "-"
        assert Operator.SUB.prefix == "sub"
        assert Operator.NOT_EQUAL.operator_type == OperatorType.COMPARISON
        assert Operator("and") is Operator.AND


class TestResolveFunction:
    """Tests for function overload resolution."""

    def test_resolves_exact_overload(self) -> None:
        signature = resolve_function(FunctionType.DOT, (ValueType.VECTOR3F32, ValueType.VECTOR3F32))
        assert signature.output == ValueType.FLOAT32
        assert signature.arity == 2

    def test_accepts_string_names(self) -> None:
        signature = resolve_function("sin", ("float32",))  # type: ignore[arg-type]
        assert signature.function == FunctionType.SIN
        assert signature.inputs == (ValueType.FLOAT32,)

    def test_single_overload_needs_no_types(self) -> None:
        signature = resolve_function(FunctionType.TEXTURE_2D)
        assert signature.inputs == (ValueType.SAMPLER2D, ValueType.VECTOR2F32)
        assert signature.output == ValueType.VECTOR4F32
        assert signature.input_names == ("sampler", "coordinates")

    def test_overloaded_function_needs_types(self) -> None:
        with pytest.raises(InvalidNodeSpecError, match="overloaded"):
            resolve_function(FunctionType.COS)

    def test_no_matching_overload(self) -> None:
        with pytest.raises(InvalidNodeSpecError, match="No overload"):
            resolve_function(FunctionType.CROSS, (ValueType.VECTOR2F32, ValueType.VECTOR2F32))

    def test_unknown_function(self) -> None:
        with pytest.raises(InvalidNodeSpecError, match="Unknown function"):
            resolve_function("normalize")

    def test_unknown_input_type(self) -> None:
        with pytest.raises(InvalidNodeSpecError, match="Unknown value type"):
            resolve_function("sin", ("float64",))  # type: ignore[arg-type]

    def test_constructor_overloads(self) -> None:
        signature = resolve_function(FunctionType.CREATE_VEC4, (ValueType.VECTOR3F32, ValueType.FLOAT32))
        assert signature.output == ValueType.VECTOR4F32
        assert FunctionType.CREATE_VEC4.glsl_name == "vec4"
        assert FunctionType.CREATE_VEC4.is_constructor

    def test_every_function_has_overloads(self) -> None:
        assert set(FUNCTION_SIGNATURES) == set(FunctionType)
        for overloads in FUNCTION_SIGNATURES.values():
            assert overloads
            assert len({s.inputs for s in overloads}) == len(overloads)
