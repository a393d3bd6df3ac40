"""Pydantic schema of script files and conversion to and from Script."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Annotated, Literal, assert_never

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from ._catalog import FunctionType, Operator
from ._nodes import (
    ConstantNode,
    FunctionNode,
    InputVariableNode,
    OperatorNode,
    OutputVariableNode,
    PushConstantNode,
    UniformNode,
    VertexOutputNode,
)
from ._script import Script, ShaderStage
from ._types import ValueType

if TYPE_CHECKING:
    from ._nodes import Node
    from ._types import LiteralValue

logger = logging.getLogger(__name__)

type DocumentValue = bool | int | float | list[float]


class ScriptFileError(Exception):
    """Raised when a script file does not match the schema."""


class _Entry(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)


class ConstantEntry(_Entry):
    id: str
    kind: Literal["constant"] = "constant"
    value_type: ValueType = Field(alias="type")
    value: DocumentValue


class InputEntry(_Entry):
    id: str
    kind: Literal["input"] = "input"
    value_type: ValueType = Field(alias="type")
    location: int


class OutputEntry(_Entry):
    id: str
    kind: Literal["output"] = "output"
    value_type: ValueType = Field(alias="type")
    location: int


class UniformEntry(_Entry):
    id: str
    kind: Literal["uniform"] = "uniform"
    value_type: ValueType = Field(alias="type")
    set_index: int = Field(default=0, alias="set")
    binding: int
    resource: str | None = None


class PushConstantEntry(_Entry):
    id: str
    kind: Literal["push_constant"] = "push_constant"
    value_type: ValueType = Field(alias="type")


class VertexOutputEntry(_Entry):
    id: str
    kind: Literal["vertex_output"] = "vertex_output"


class OperatorEntry(_Entry):
    id: str
    kind: Literal["operator"] = "operator"
    operator: Operator
    left: ValueType
    right: ValueType | None = None


class FunctionEntry(_Entry):
    id: str
    kind: Literal["function"] = "function"
    function: FunctionType
    inputs: list[ValueType] | None = None


NodeEntry = Annotated[
    ConstantEntry
    | InputEntry
    | OutputEntry
    | UniformEntry
    | PushConstantEntry
    | VertexOutputEntry
    | OperatorEntry
    | FunctionEntry,
    Field(discriminator="kind"),
]


class EdgeEntry(_Entry):
    """Edge from output pin `source_pin` of `source` to input pin `target_pin` of `target`."""

    source: str
    source_pin: int = 0
    target: str
    target_pin: int = 0


class DefaultEntry(_Entry):
    """Default literal of input pin `pin` of `node`."""

    node: str
    pin: int = 0
    value: DocumentValue


class ScriptDocument(_Entry):
    """Top-level table of a script file."""

    stage: ShaderStage = ShaderStage.FRAGMENT
    nodes: list[NodeEntry] = Field(default_factory=list)
    edges: list[EdgeEntry] = Field(default_factory=list)
    defaults: list[DefaultEntry] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_ids(self) -> ScriptDocument:
        seen: set[str] = set()
        for entry in self.nodes:
            if entry.id in seen:
                msg = f"Duplicate node id: {entry.id!r}"
                raise ValueError(msg)
            seen.add(entry.id)
        for edge in self.edges:
            for ref in (edge.source, edge.target):
                if ref not in seen:
                    msg = f"Edge refers to unknown node id: {ref!r}"
                    raise ValueError(msg)
        for default in self.defaults:
            if default.node not in seen:
                msg = f"Default refers to unknown node id: {default.node!r}"
                raise ValueError(msg)
        return self


@dataclass(frozen=True, slots=True)
class LoadedScript:
    """A script built from a file, with the file's node ids.

    Attributes:
        script: The built script.
        handles: Mapping from node id in the file to node handle.

    """

    script: Script
    handles: dict[str, int] = field(default_factory=dict)

    @property
    def names(self) -> dict[int, str]:
        """Mapping from node handle to node id in the file."""
        return {handle: name for name, handle in self.handles.items()}


def _create(script: Script, entry: NodeEntry) -> int:
    match entry:
        case ConstantEntry():
            return script.create_constant(entry.value_type, entry.value)
        case InputEntry():
            return script.create_input(entry.value_type, entry.location)
        case OutputEntry():
            return script.create_output(entry.value_type, entry.location)
        case UniformEntry():
            return script.create_uniform(entry.value_type, entry.set_index, entry.binding, entry.resource)
        case PushConstantEntry():
            return script.create_push_constant(entry.value_type)
        case VertexOutputEntry():
            return script.create_vertex_output()
        case OperatorEntry():
            return script.create_operator(entry.operator, entry.left, entry.right)
        case FunctionEntry():
            return script.create_function(entry.function, entry.inputs)
        case _:
            assert_never(entry)


def document_to_script(document: ScriptDocument) -> LoadedScript:
    """Build a Script from a validated document.

    Nodes are created in document order, so handles follow the order of the
    `[[nodes]]` entries. Errors raised by the script (invalid node
    parameters, type mismatches, cycles) propagate unchanged.

    Args:
        document: The validated document.

    Returns:
        The script and the mapping from node ids to handles.

    """
    script = Script(document.stage)
    handles: dict[str, int] = {}
    for entry in document.nodes:
        handles[entry.id] = _create(script, entry)
    for edge in document.edges:
        script.connect(
            script.output_pin(handles[edge.source], edge.source_pin),
            script.input_pin(handles[edge.target], edge.target_pin),
        )
    for default in document.defaults:
        script.set_default(script.input_pin(handles[default.node], default.pin), default.value)
    logger.debug("Built script with %d node(s) and %d edge(s)", len(handles), len(document.edges))
    return LoadedScript(script=script, handles=handles)


def _to_document_value(value: LiteralValue) -> DocumentValue:
    return list(value) if isinstance(value, tuple) else value


def _entry(node_id: str, node: Node) -> NodeEntry:  # noqa: PLR0911
    match node:
        case ConstantNode():
            return ConstantEntry(id=node_id, value_type=node.value_type, value=_to_document_value(node.value))
        case InputVariableNode():
            return InputEntry(id=node_id, value_type=node.value_type, location=node.location)
        case OutputVariableNode():
            return OutputEntry(id=node_id, value_type=node.value_type, location=node.location)
        case UniformNode():
            return UniformEntry(
                id=node_id,
                value_type=node.value_type,
                set_index=node.set_index,
                binding=node.binding,
                resource=node.resource,
            )
        case PushConstantNode():
            return PushConstantEntry(id=node_id, value_type=node.value_type)
        case VertexOutputNode():
            return VertexOutputEntry(id=node_id)
        case OperatorNode():
            return OperatorEntry(id=node_id, operator=node.operator, left=node.left_type, right=node.right_type)
        case FunctionNode():
            return FunctionEntry(id=node_id, function=node.function, inputs=list(node.signature.inputs))
    msg = f"Cannot serialize node: {node!r}"
    raise TypeError(msg)


def script_to_document(script: Script, names: dict[int, str] | None = None) -> ScriptDocument:
    """Describe a Script as a document.

    Args:
        script: The script to describe.
        names: Node ids by handle. Nodes without a name get `n<handle>`.

    Returns:
        A document that rebuilds an equivalent script, with nodes in
        ascending handle order.

    Raises:
        ScriptFileError: If the names clash or a node cannot be described.

    """
    names = names or {}

    def node_id(handle: int) -> str:
        return names.get(handle, f"n{handle}")

    try:
        nodes = [_entry(node_id(node.handle), node) for node in script.nodes]
        edges = [
            EdgeEntry(
                source=node_id(edge.source.node),
                source_pin=edge.source.index,
                target=node_id(edge.target.node),
                target_pin=edge.target.index,
            )
            for edge in script.edges
        ]
        defaults = [
            DefaultEntry(node=node_id(pin.node), pin=pin.index, value=_to_document_value(value))
            for node in script.nodes
            for pin in node.input_pins
            if (value := script.default_of(pin)) is not None
        ]
        document = ScriptDocument(stage=script.stage, nodes=nodes, edges=edges, defaults=defaults)
    except ValidationError as e:
        msg = f"Cannot describe script: {e}"
        raise ScriptFileError(msg) from e
    return document
