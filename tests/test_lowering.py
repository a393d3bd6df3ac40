"""Tests for the lowering pass."""

from dataclasses import FrozenInstanceError

import pytest

from shadergraph import (
    InterfaceKind,
    InternalInvariantViolation,
    MissingOutputError,
    Pin,
    PinDirection,
    Script,
    ShaderStage,
    TypeMismatchError,
    UnboundInputError,
    ValueType,
    lower_script,
)
from shadergraph._lowering import format_float, format_literal


def _statements(script: Script, *, prune_unused: bool = False) -> list[str]:
    result = lower_script(script, prune_unused=prune_unused)
    result.raise_for_error()
    return [f"{b.identifier} = {b.expression}" for b in result.bindings] + [
        f"{a.target} = {a.expression}" for a in result.assignments
    ]


def _wire(script: Script, source: int, target: int, index: int = 0) -> None:
    script.connect(script.output_pin(source), script.input_pin(target, index))


class TestLiterals:
    """Tests for literal formatting."""

    def test_format_float(self) -> None:
        assert format_float(4.0) == "4"
        assert format_float(2.1) == "2.1"
        assert format_float(-0.5) == "-0.5"
        assert format_float(0.0) == "0"

    def test_format_float_keeps_precision(self) -> None:
        assert format_float(1e-7) == "1e-07"
        assert format_float(0.1234567) == "0.1234567"
        assert format_float(1e20) == "1e+20"
        assert format_float(-1e20) == "-1e+20"
        assert format_float(16777215.0) == "16777215"
        assert format_float(16777216.0) == "16777216.0"
        assert format_float(3.4e38) == "3.4e+38"

    def test_format_literal(self) -> None:
        assert format_literal(ValueType.BOOL, True) == "true"
        assert format_literal(ValueType.INT32, -3) == "-3"
        assert format_literal(ValueType.VECTOR2F32, (1.0, 0.25)) == "vec2(1, 0.25)"
        identity = tuple(1.0 if i % 5 == 0 else 0.0 for i in range(16))
        assert format_literal(ValueType.MATRIX4F32, identity).startswith("mat4(1, 0, 0, 0, 0, 1,")


class TestLowerScript:
    """Tests for lower_script."""

    def test_large_and_tiny_constants_keep_their_value(self) -> None:
        script = Script()
        large = script.create_constant("float32", 1e20)
        tiny = script.create_constant("float32", 1e-7)
        add = script.create_operator("add", "float32")
        out = script.create_output("float32", 0)
        _wire(script, large, add, 0)
        _wire(script, tiny, add, 1)
        _wire(script, add, out)

        assert _statements(script) == [
            "float_0 = 1e+20",
            "float_1 = 1e-07",
            "add_0 = float_0 + float_1",
            "out_0 = add_0",
        ]

    def test_bindings_in_topological_order(self) -> None:
        script = Script()
        out = script.create_output("vector4f32", 0)
        mul = script.create_operator("mul", "matrix4f32", "vector4f32")
        matrix = script.create_uniform("matrix4f32", 0, 0)
        position = script.create_input("vector4f32", 0)
        _wire(script, mul, out)
        _wire(script, matrix, mul, 0)
        _wire(script, position, mul, 1)

        assert _statements(script) == ["mul_0 = ubo_0.mat4_0 * in_0", "out_0 = mul_0"]

    def test_lowering_is_deterministic(self) -> None:
        script = Script()
        a = script.create_constant("float32", 1.5)
        b = script.create_input("float32", 2)
        add = script.create_operator("add", "float32")
        sin = script.create_function("sin", ["float32"])
        out = script.create_output("float32", 0)
        _wire(script, a, add, 0)
        _wire(script, b, add, 1)
        _wire(script, add, sin)
        _wire(script, sin, out)

        first = lower_script(script)
        second = lower_script(script)

        assert first == second
        assert [b.identifier for b in first.bindings] == ["float_0", "add_0", "sin_0"]

    def test_int_operand_converted_to_float(self) -> None:
        script = Script()
        count = script.create_constant("int32", 3)
        scale = script.create_constant("float32", 0.5)
        mul = script.create_operator("mul", "int32", "float32")
        sin = script.create_function("sin", ["float32"])
        out = script.create_output("float32", 0)
        _wire(script, count, mul, 0)
        _wire(script, scale, mul, 1)
        _wire(script, count, sin)
        _wire(script, mul, out)

        statements = _statements(script)

        assert "int_0 = 3" in statements
        assert "mul_0 = float(int_0) * float_0" in statements
        assert "sin_0 = sin(float(int_0))" in statements

    def test_comparison_and_logical_operators(self) -> None:
        script = Script()
        a = script.create_constant("float32", 1.0)
        b = script.create_constant("float32", 2.0)
        less = script.create_operator("less", "float32")
        flag = script.create_constant("bool", True)
        both = script.create_operator("and", "bool")
        out = script.create_output("float32", 0)
        _wire(script, a, less, 0)
        _wire(script, b, less, 1)
        _wire(script, less, both, 0)
        _wire(script, flag, both, 1)
        _wire(script, a, out)

        result = lower_script(script)

        assert result.success
        by_identifier = {b.identifier: b for b in result.bindings}
        assert by_identifier["lt_0"].expression == "float_0 < float_1"
        assert by_identifier["lt_0"].value_type == ValueType.BOOL
        assert by_identifier["bool_0"].expression == "true"
        assert by_identifier["and_0"].expression == "lt_0 && bool_0"

    def test_defaults_are_inlined(self) -> None:
        script = Script()
        cos = script.create_function("cos", ["vector4f32"])
        out = script.create_output("vector4f32", 0)
        script.set_default(script.input_pin(cos), (2.1, 3.5, 4.7, 5.2))
        _wire(script, cos, out)

        assert _statements(script) == ["cos_0 = cos(vec4(2.1, 3.5, 4.7, 5.2))", "out_0 = cos_0"]

    def test_int_default_in_float_slot(self) -> None:
        script = Script()
        out = script.create_output("float32", 0)
        script.set_default(script.input_pin(out), 2)

        assert _statements(script) == ["out_0 = 2"]

    def test_constructor_shares_vector_counter(self) -> None:
        script = Script()
        literal = script.create_constant("vector2f32", [0.0, 1.0])
        make = script.create_function("create_vec2", ["float32", "float32"])
        add = script.create_operator("add", "vector2f32")
        out = script.create_output("vector2f32", 0)
        script.set_default(script.input_pin(make, 0), 1.0)
        script.set_default(script.input_pin(make, 1), 2.0)
        _wire(script, literal, add, 0)
        _wire(script, make, add, 1)
        _wire(script, add, out)

        assert _statements(script) == [
            "vec2_0 = vec2(0, 1)",
            "vec2_1 = vec2(1, 2)",
            "add_0 = vec2_0 + vec2_1",
            "out_0 = add_0",
        ]

    def test_vertex_output(self) -> None:
        script = Script(ShaderStage.VERTEX)
        position = script.create_input("vector4f32", 0)
        color = script.create_input("vector4f32", 1)
        gl_position = script.create_vertex_output()
        color_out = script.create_output("vector4f32", 0)
        _wire(script, position, gl_position)
        _wire(script, color, color_out)

        result = lower_script(script)

        assert result.stage == ShaderStage.VERTEX
        assert [(a.target, a.expression) for a in result.assignments] == [
            ("gl_Position", "in_0"),
            ("out_0", "in_1"),
        ]
        assert [o.identifier for o in result.outputs] == ["out_0"]


class TestInterfaceVariables:
    """Tests for interface declarations."""

    def test_stage_variables_sorted_by_location(self) -> None:
        script = Script()
        late = script.create_input("vector2f32", 3)
        early = script.create_input("float32", 1)
        out = script.create_output("float32", 0)
        _wire(script, early, out)

        result = lower_script(script)

        assert [(v.identifier, v.location, v.node) for v in result.inputs] == [
            ("in_1", 1, early),
            ("in_3", 3, late),
        ]
        assert result.outputs[0].kind == InterfaceKind.OUTPUT

    def test_push_constant_offsets(self) -> None:
        script = Script()
        handles = [
            script.create_push_constant("float32"),
            script.create_push_constant("vector4f32"),
            script.create_push_constant("matrix4f32"),
            script.create_push_constant("float32"),
        ]
        out = script.create_output("float32", 0)
        _wire(script, handles[3], out)

        result = lower_script(script)

        assert [(p.identifier, p.offset) for p in result.push_constants] == [
            ("pc.float_0", 0),
            ("pc.vec4_0", 16),
            ("pc.mat4_0", 32),
            ("pc.float_1", 96),
        ]
        assert all(p.kind == InterfaceKind.PUSH_CONSTANT and p.block == "pc" for p in result.push_constants)
        assert _statements(script) == ["out_0 = pc.float_1"]

    def test_uniform_blocks_and_samplers(self) -> None:
        script = Script()
        color = script.create_uniform("vector4f32", 0, 0, resource="material")
        texture = script.create_uniform("sampler2d", 0, 1)
        other_set = script.create_uniform("vector4f32", 1, 0)
        scale = script.create_uniform("float32", 0, 0)
        out = script.create_output("vector4f32", 0)
        _wire(script, color, out)

        result = lower_script(script)

        assert [(u.kind, u.identifier, u.node) for u in result.uniforms] == [
            (InterfaceKind.UNIFORM, "ubo_0.vec4_0", color),
            (InterfaceKind.UNIFORM, "ubo_0.float_0", scale),
            (InterfaceKind.SAMPLER, "sampler_0", texture),
            (InterfaceKind.UNIFORM, "ubo_1.vec4_0", other_set),
        ]
        assert result.uniforms[0].resource == "material"
        assert (result.uniforms[3].set_index, result.uniforms[3].binding) == (1, 0)

    def test_local_counters_restart_after_declarations(self) -> None:
        script = Script()
        uniform = script.create_uniform("float32", 0, 0)
        constant = script.create_constant("float32", 1.0)
        add = script.create_operator("add", "float32")
        out = script.create_output("float32", 0)
        _wire(script, uniform, add, 0)
        _wire(script, constant, add, 1)
        _wire(script, add, out)

        assert _statements(script) == ["float_0 = 1", "add_0 = ubo_0.float_0 + float_0", "out_0 = add_0"]


class TestPruning:
    """Tests for prune_unused."""

    def _script(self) -> tuple[Script, int]:
        script = Script()
        used = script.create_constant("float32", 1.0)
        unused = script.create_function("sin", ["float32"])
        script.set_default(script.input_pin(unused), 0.5)
        out = script.create_output("float32", 0)
        _wire(script, used, out)
        return script, unused

    def test_unused_nodes_kept_by_default(self) -> None:
        script, unused = self._script()

        result = lower_script(script)

        assert unused in {b.node for b in result.bindings}

    def test_prune_drops_unused_nodes(self) -> None:
        script, unused = self._script()

        result = lower_script(script, prune_unused=True)

        assert unused not in {b.node for b in result.bindings}
        assert _statements(script, prune_unused=True) == ["float_0 = 1", "out_0 = float_0"]

    def test_prune_drops_unused_interface_variables(self) -> None:
        script, _ = self._script()
        script.create_input("float32", 0)
        script.create_push_constant("vector4f32")

        result = lower_script(script, prune_unused=True)

        assert result.inputs == ()
        assert result.push_constants == ()


class TestLoweringErrors:
    """Tests for errors reported by lower_script."""

    def test_unbound_input_reported(self) -> None:
        script = Script()
        script.create_output("float32", 0)

        result = lower_script(script)

        assert not result.success
        assert isinstance(result.error, UnboundInputError)
        assert result.bindings == ()
        assert result.assignments == ()
        with pytest.raises(UnboundInputError):
            result.raise_for_error()

    def test_missing_output_reported(self) -> None:
        script = Script()
        script.create_constant("float32", 1.0)

        result = lower_script(script)

        assert isinstance(result.error, MissingOutputError)

    def test_result_is_frozen(self) -> None:
        script = Script()
        out = script.create_output("float32", 0)
        script.set_default(script.input_pin(out), 1.0)
        result = lower_script(script)

        with pytest.raises(FrozenInstanceError):
            result.bindings = ()  # type: ignore[misc]
        with pytest.raises(FrozenInstanceError):
            result.assignments[0].expression = "0"  # type: ignore[misc]

    # --- Safety checks on graphs that bypass Script.connect ---

    def test_mistyped_edge_reported_without_output(self) -> None:
        script = Script()
        uv = script.create_input("vector2f32", 0)
        dot = script.create_function("dot", ["vector3f32", "vector3f32"])
        out = script.create_output("float32", 0)
        _wire(script, dot, out)
        script.set_default(script.input_pin(dot, 1), [0.0, 0.0, 1.0])
        script._edges[(dot, 0)] = script.output_pin(uv)

        result = lower_script(script)

        assert isinstance(result.error, TypeMismatchError)
        assert result.error.source == script.output_pin(uv)
        assert result.error.target == script.input_pin(dot, 0)
        assert result.bindings == ()
        assert result.assignments == ()
        assert result.inputs == ()

    def test_residual_cycle_raises(self) -> None:
        script = Script()
        sin = script.create_function("sin", ["float32"])
        cos = script.create_function("cos", ["float32"])
        out = script.create_output("float32", 0)
        _wire(script, sin, cos)
        _wire(script, cos, out)
        script._edges[(sin, 0)] = script.output_pin(cos)

        with pytest.raises(InternalInvariantViolation, match="not acyclic"):
            lower_script(script)

    def test_read_of_node_without_value_raises(self) -> None:
        script = Script()
        first = script.create_output("float32", 0)
        second = script.create_output("float32", 1)
        script.set_default(script.input_pin(first), 1.0)
        # Output nodes have no output pin, so nothing is ever lowered for this source.
        script._edges[(second, 0)] = Pin(
            node=first,
            direction=PinDirection.OUTPUT,
            index=0,
            value_type=ValueType.FLOAT32,
            name="value",
        )

        with pytest.raises(InternalInvariantViolation, match="before it was lowered"):
            lower_script(script)
