"""Tests for script query and rendering helpers used by the CLI."""

import pytest
from rich.console import Console

from shadergraph import LoadedScript, Script, lower_script
from shadergraph._cli.graph_query import describe_node, list_nodes, node_label
from shadergraph._cli.graph_render import render_binding_table, render_node_table
from shadergraph._nodes import NodeKind

# --- Fixtures ---


@pytest.fixture
def loaded() -> LoadedScript:
    """Small script: a sampler read at a UV input, written to an output."""
    script = Script()
    sampler = script.create_uniform("sampler2d", 1, 2, resource="noise.png")
    uv = script.create_input("vector2f32", 0)
    texture = script.create_function("texture_2d")
    out = script.create_output("vector4f32", 0)
    script.connect(script.output_pin(sampler), script.input_pin(texture, 0))
    script.connect(script.output_pin(uv), script.input_pin(texture, 1))
    script.connect(script.output_pin(texture), script.input_pin(out))
    return LoadedScript(script=script, handles={"noise": sampler, "color": out})


# --- graph_query ---


class TestListNodes:
    def test_lists_in_handle_order(self, loaded: LoadedScript) -> None:
        nodes = list_nodes(loaded)

        assert [n.handle for n in nodes] == [0, 1, 2, 3]
        assert [n.name for n in nodes] == ["noise", "n1", "n2", "color"]

    def test_dependency_counts(self, loaded: LoadedScript) -> None:
        texture = list_nodes(loaded)[2]

        assert texture.kind == NodeKind.FUNCTION
        assert texture.dependency_count == 2
        assert texture.dependent_count == 1

    def test_labels(self, loaded: LoadedScript) -> None:
        labels = [node_label(node) for node in loaded.script.nodes]

        assert labels == ["uniform", "input", "function", "output"]


class TestDescribeNode:
    def test_uniform_with_resource(self, loaded: LoadedScript) -> None:
        node = loaded.script.get_node(0)

        assert describe_node(node) == "sampler2d @ set 1, binding 2 (noise.png)"

    def test_function_signature(self, loaded: LoadedScript) -> None:
        node = loaded.script.get_node(2)

        assert describe_node(node) == "texture_2d(sampler2d, vector2f32) -> vector4f32"

    def test_operator_and_constant(self) -> None:
        script = Script()
        add = script.create_operator("add", "int32", "float32")
        value = script.create_constant("bool", False)

        assert describe_node(script.get_node(add)) == "int32 + float32 -> float32"
        assert describe_node(script.get_node(value)) == "bool = False"


# --- graph_render ---


class TestRender:
    def test_node_table(self, loaded: LoadedScript) -> None:
        console = Console(record=True, width=120)

        render_node_table(list_nodes(loaded), console)

        text = console.export_text()
        assert "FUNCTION" in text
        assert "noise" in text
        assert "Total: 4 nodes" in text

    def test_empty_node_table(self) -> None:
        console = Console(record=True, width=120)

        render_node_table([], console)

        assert "Script has no nodes" in console.export_text()

    def test_binding_table(self, loaded: LoadedScript) -> None:
        console = Console(record=True, width=120)

        render_binding_table(lower_script(loaded.script), console)

        text = console.export_text()
        assert "texture(sampler_0, in_0)" in text
        assert "out_0" in text
