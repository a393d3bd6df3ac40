"""Lowering of a validated script into ordered bindings and interface declarations."""

from __future__ import annotations

import logging
from itertools import groupby
from typing import TYPE_CHECKING, assert_never

from shadergraph._catalog import OperatorType
from shadergraph._errors import (
    InternalInvariantViolation,
    MissingOutputError,
    TypeMismatchError,
    UnboundInputError,
)
from shadergraph._nodes import (
    OUTPUT_NODE_TYPES,
    ConstantNode,
    FunctionNode,
    InputVariableNode,
    OperatorNode,
    OutputVariableNode,
    PushConstantNode,
    UniformNode,
    VertexOutputNode,
)
from shadergraph._types import common_type, is_compatible

from ._literals import convert, format_literal
from ._naming import NameCounters
from ._result import Binding, InterfaceKind, InterfaceVariable, LoweringResult, OutputAssignment

if TYPE_CHECKING:
    from shadergraph._nodes import Node, NodeHandle, Pin
    from shadergraph._script import Script
    from shadergraph._types import ValueType

logger = logging.getLogger(__name__)

PUSH_CONSTANT_BLOCK = "pc"
VERTEX_POSITION = "gl_Position"
# Minimum stride between push-constant members, in bytes.
PUSH_CONSTANT_MIN_STRIDE = 16


class _Lowering:
    """Mutable state of one lowering run over a fixed node order."""

    def __init__(self, script: Script, order: list[NodeHandle]) -> None:
        self._script = script
        self._nodes: list[Node] = [script.get_node(h) for h in order]
        self._counters = NameCounters()
        # (node, output index) -> expression reading that output
        self._expressions: dict[tuple[NodeHandle, int], str] = {}
        self._inputs: list[InterfaceVariable] = []
        self._outputs: list[InterfaceVariable] = []
        self._uniforms: list[InterfaceVariable] = []
        self._push_constants: list[InterfaceVariable] = []
        self._bindings: list[Binding] = []
        self._assignments: list[OutputAssignment] = []

    def run(self) -> LoweringResult:
        self._declare_inputs()
        self._declare_push_constants()
        self._declare_uniforms()
        self._declare_outputs()
        for node in self._nodes:
            self._emit(node)
        return LoweringResult(
            stage=self._script.stage,
            bindings=tuple(self._bindings),
            assignments=tuple(self._assignments),
            inputs=tuple(self._inputs),
            outputs=tuple(self._outputs),
            uniforms=tuple(self._uniforms),
            push_constants=tuple(self._push_constants),
        )

    def _of_type[N](self, node_type: type[N]) -> list[N]:
        return [node for node in self._nodes if isinstance(node, node_type)]

    def _declare_inputs(self) -> None:
        for node in sorted(self._of_type(InputVariableNode), key=lambda n: n.location):
            identifier = f"in_{node.location}"
            self._expressions[(node.handle, 0)] = identifier
            self._inputs.append(
                InterfaceVariable(
                    kind=InterfaceKind.INPUT,
                    identifier=identifier,
                    value_type=node.value_type,
                    node=node.handle,
                    location=node.location,
                ),
            )

    def _declare_push_constants(self) -> None:
        offset = 0
        for node in sorted(self._of_type(PushConstantNode), key=lambda n: n.handle):
            member = self._counters.next(node.value_type.glsl_name)
            identifier = f"{PUSH_CONSTANT_BLOCK}.{member}"
            self._expressions[(node.handle, 0)] = identifier
            self._push_constants.append(
                InterfaceVariable(
                    kind=InterfaceKind.PUSH_CONSTANT,
                    identifier=identifier,
                    value_type=node.value_type,
                    node=node.handle,
                    block=PUSH_CONSTANT_BLOCK,
                    member=member,
                    offset=offset,
                ),
            )
            offset += max(PUSH_CONSTANT_MIN_STRIDE, node.value_type.byte_size)
        self._counters.reset_variables()

    def _declare_uniforms(self) -> None:
        uniforms = sorted(self._of_type(UniformNode), key=lambda n: (n.set_index, n.binding, n.handle))
        for _, in_set in groupby(uniforms, key=lambda n: n.set_index):
            for _, at_binding in groupby(in_set, key=lambda n: n.binding):
                members = list(at_binding)
                if members[0].value_type.is_sampler:
                    self._declare_sampler(members[0])
                else:
                    self._declare_block(members)
            # Block members are numbered per descriptor set.
            self._counters.reset_variables()

    def _declare_sampler(self, node: UniformNode) -> None:
        identifier = self._counters.next("sampler")
        self._expressions[(node.handle, 0)] = identifier
        self._uniforms.append(
            InterfaceVariable(
                kind=InterfaceKind.SAMPLER,
                identifier=identifier,
                value_type=node.value_type,
                node=node.handle,
                set_index=node.set_index,
                binding=node.binding,
                resource=node.resource,
            ),
        )

    def _declare_block(self, members: list[UniformNode]) -> None:
        block = self._counters.next("ubo")
        for node in members:
            member = self._counters.next(node.value_type.glsl_name)
            identifier = f"{block}.{member}"
            self._expressions[(node.handle, 0)] = identifier
            self._uniforms.append(
                InterfaceVariable(
                    kind=InterfaceKind.UNIFORM,
                    identifier=identifier,
                    value_type=node.value_type,
                    node=node.handle,
                    set_index=node.set_index,
                    binding=node.binding,
                    block=block,
                    member=member,
                    resource=node.resource,
                ),
            )

    def _declare_outputs(self) -> None:
        for node in sorted(self._of_type(OutputVariableNode), key=lambda n: n.location):
            self._outputs.append(
                InterfaceVariable(
                    kind=InterfaceKind.OUTPUT,
                    identifier=f"out_{node.location}",
                    value_type=node.value_type,
                    node=node.handle,
                    location=node.location,
                ),
            )

    def _emit(self, node: Node) -> None:
        match node:
            case InputVariableNode() | UniformNode() | PushConstantNode():
                # Declared before main(); consumers read the interface identifier.
                pass
            case ConstantNode():
                self._bind(node, node.value_type, format_literal(node.value_type, node.value))
            case OperatorNode():
                self._bind(node, node.result_type, self._operator_expression(node))
            case FunctionNode():
                args = ", ".join(self._arguments(node))
                self._bind(node, node.signature.output, f"{node.function.glsl_name}({args})")
            case OutputVariableNode():
                (expression,) = self._arguments(node)
                self._assign(node, f"out_{node.location}", node.value_type, expression)
            case VertexOutputNode():
                (expression,) = self._arguments(node)
                self._assign(node, VERTEX_POSITION, node.value_type, expression)
            case _:
                assert_never(node)

    def _operator_expression(self, node: OperatorNode) -> str:
        left, right = self._arguments(node)
        if node.operator_type != OperatorType.LOGICAL:
            operand_type = common_type(node.left_type, node.right_type)
            if operand_type is not None:
                left = convert(left, node.left_type, operand_type)
                right = convert(right, node.right_type, operand_type)
        return f"{left} {node.operator.token} {right}"

    def _arguments(self, node: Node) -> list[str]:
        return [self._read(pin) for pin in node.input_pins]

    def _read(self, pin: Pin) -> str:
        """Expression feeding `pin`, converted to the pin's declared type."""
        source = self._script.source_of(pin)
        if source is None:
            default = self._script.default_of(pin)
            if default is None:
                msg = f"Input pin {pin} has neither an edge nor a default after validation"
                raise InternalInvariantViolation(msg)
            return format_literal(pin.value_type, default)

        if not is_compatible(source.value_type, pin.value_type):
            msg = f"Edge {source} -> {pin} carries '{source.value_type}' into a '{pin.value_type}' slot"
            raise TypeMismatchError(msg, source=source, target=pin)

        expression = self._expressions.get((source.node, source.index))
        if expression is None:
            msg = f"Node {source.node} is read by {pin} before it was lowered"
            raise InternalInvariantViolation(msg)
        return convert(expression, source.value_type, pin.value_type)

    def _bind(self, node: ConstantNode | OperatorNode | FunctionNode, value_type: ValueType, expression: str) -> None:
        identifier = self._counters.for_node(node)
        self._expressions[(node.handle, 0)] = identifier
        self._bindings.append(
            Binding(identifier=identifier, value_type=value_type, expression=expression, node=node.handle),
        )
        logger.debug("Bound node %d: %s %s = %s", node.handle, value_type.glsl_name, identifier, expression)

    def _assign(self, node: Node, target: str, value_type: ValueType, expression: str) -> None:
        self._assignments.append(
            OutputAssignment(target=target, value_type=value_type, expression=expression, node=node.handle),
        )
        logger.debug("Assigned node %d: %s = %s", node.handle, target, expression)


def lower_script(script: Script, *, prune_unused: bool = False) -> LoweringResult:
    """Lower a script into ordered bindings and interface declarations.

    This is a read-only traversal of the script:
    1. Validates the script (unbound inputs, missing output)
    2. Orders the nodes topologically, breaking ties by ascending handle
    3. Declares interface variables (inputs, push constants, uniforms, outputs)
    4. Emits one binding per constant, operator and function node and one
       assignment per output node, re-checking every edge's types

    Validation and type errors are returned in the result, never raised.
    Lowering the same unmodified script always yields an equal result.

    Args:
        script: The script to lower.
        prune_unused: Only lower the nodes output nodes depend on.

    Returns:
        LoweringResult with the emitted program, or the first error.

    Raises:
        InternalInvariantViolation: If the script graph has a cycle or an
            edge refers to a node that was not lowered before its consumer.

    Example:
        >>> result = lower_script(script)
        >>> if result.success:
        ...     print(generate_glsl(result))

    """
    try:
        script.validate()
    except (UnboundInputError, MissingOutputError) as e:
        logger.debug("Script validation failed: %s", e)
        return LoweringResult(stage=script.stage, error=e)

    graph = script.dependency_graph()
    if prune_unused:
        outputs = [node.handle for node in script.nodes if isinstance(node, OUTPUT_NODE_TYPES)]
        keep = frozenset(outputs).union(*(graph.ancestors(h) for h in outputs))
        logger.debug("Pruning %d unused node(s)", len(graph) - len(keep))
        graph = graph.subgraph(keep)

    try:
        order = graph.topological_order()
    except ValueError as e:
        msg = f"Script graph is not acyclic: {e}"
        raise InternalInvariantViolation(msg) from e

    logger.debug("Lowering %d node(s) for the %s stage", len(order), script.stage)
    try:
        return _Lowering(script, order).run()
    except TypeMismatchError as e:
        logger.debug("Lowering failed: %s", e)
        return LoweringResult(stage=script.stage, error=e)
