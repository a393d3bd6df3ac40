"""Script query functions for CLI commands.

This module provides pure functions for inspecting a loaded script.
These are the functional core - no I/O, no Rich rendering.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, assert_never

from shadergraph._nodes import (
    ConstantNode,
    FunctionNode,
    InputVariableNode,
    NodeKind,
    OperatorNode,
    OutputVariableNode,
    PushConstantNode,
    UniformNode,
    VertexOutputNode,
)

if TYPE_CHECKING:
    from shadergraph._document import LoadedScript
    from shadergraph._nodes import Node


@dataclass(frozen=True, slots=True)
class NodeInfo:
    """Basic information about a node for listing."""

    handle: int
    name: str
    kind: NodeKind
    label: str
    description: str
    dependency_count: int
    dependent_count: int


def node_label(node: Node) -> str:
    """Short category label: the variable kind for variables, else the node kind."""
    if node.kind == NodeKind.VARIABLE:
        return str(node.variable_kind)  # type: ignore[union-attr]
    return str(node.kind)


def describe_node(node: Node) -> str:
    """One-line human-readable description of what a node does."""
    match node:
        case ConstantNode():
            return f"{node.value_type} = {node.value!r}"
        case InputVariableNode() | OutputVariableNode():
            return f"{node.value_type} @ location {node.location}"
        case UniformNode():
            resource = f" ({node.resource})" if node.resource else ""
            return f"{node.value_type} @ set {node.set_index}, binding {node.binding}{resource}"
        case PushConstantNode():
            return f"{node.value_type}"
        case VertexOutputNode():
            return f"{node.value_type} -> gl_Position"
        case OperatorNode():
            return f"{node.left_type} {node.operator.token} {node.right_type} -> {node.result_type}"
        case FunctionNode():
            return str(node.signature)
        case _:
            assert_never(node)


def list_nodes(loaded: LoadedScript) -> list[NodeInfo]:
    """List the nodes of a loaded script in handle order.

    Args:
        loaded: The script and its node ids.

    Returns:
        One NodeInfo per node.

    """
    script = loaded.script
    graph = script.dependency_graph()
    names = loaded.names
    return [
        NodeInfo(
            handle=node.handle,
            name=names.get(node.handle, f"n{node.handle}"),
            kind=node.kind,
            label=node_label(node),
            description=describe_node(node),
            dependency_count=len(graph.predecessors(node.handle)),
            dependent_count=len(graph.successors(node.handle)),
        )
        for node in script.nodes
    ]
