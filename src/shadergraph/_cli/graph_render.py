"""Rich rendering utilities for script inspection commands."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.markup import escape
from rich.table import Table

from shadergraph._nodes import NodeKind

if TYPE_CHECKING:
    from rich.console import Console

    from shadergraph._lowering import LoweringResult

    from .graph_query import NodeInfo


def render_node_table(nodes: list[NodeInfo], console: Console) -> None:
    """Render node list as a Rich table.

    Args:
        nodes: List of NodeInfo to render.
        console: Rich Console to output to.

    """
    if not nodes:
        console.print("[dim]Script has no nodes[/dim]")
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("#", justify="right")
    table.add_column("Id", style="dim")
    table.add_column("Kind")
    table.add_column("Description")
    table.add_column("Deps", justify="right")
    table.add_column("Users", justify="right")

    for node in nodes:
        kind_style = _get_kind_style(node.kind)
        table.add_row(
            str(node.handle),
            escape(node.name),
            f"[{kind_style}]{node.label.upper()}[/{kind_style}]",
            escape(node.description),
            str(node.dependency_count),
            str(node.dependent_count),
        )

    console.print(table)
    console.print(f"\n[dim]Total: {len(nodes)} nodes[/dim]")


def render_binding_table(result: LoweringResult, console: Console) -> None:
    """Render the statements of a lowered script as a Rich table.

    Bindings are listed first, then output assignments, in emission order.

    Args:
        result: A successful LoweringResult.
        console: Rich Console to output to.

    """
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Node", justify="right")
    table.add_column("Type", style="yellow")
    table.add_column("Identifier", style="bold")
    table.add_column("Expression")

    for binding in result.bindings:
        table.add_row(
            str(binding.node),
            binding.value_type.glsl_name,
            escape(binding.identifier),
            escape(binding.expression),
        )
    for assignment in result.assignments:
        table.add_row(
            str(assignment.node),
            assignment.value_type.glsl_name,
            f"[green]{escape(assignment.target)}[/green]",
            escape(assignment.expression),
        )

    console.print(table)


def _get_kind_style(kind: NodeKind) -> str:
    """Get Rich style string for a node kind."""
    match kind:
        case NodeKind.VARIABLE:
            return "blue"
        case NodeKind.OPERATOR:
            return "green"
        case NodeKind.FUNCTION:
            return "yellow"
