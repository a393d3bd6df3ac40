"""Script: the mutable node graph that callers build and the compiler lowers."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from enum import StrEnum, auto
from typing import TYPE_CHECKING, Any

from ._catalog import Operator, operator_result_type, resolve_function
from ._errors import (
    CycleDetectedError,
    InvalidDirectionError,
    InvalidNodeSpecError,
    MissingOutputError,
    TypeMismatchError,
    UnboundInputError,
    UnknownNodeError,
    UnknownPinError,
)
from ._graph import DependencyGraph
from ._nodes import (
    OUTPUT_NODE_TYPES,
    ConstantNode,
    FunctionNode,
    InputVariableNode,
    NodeKind,
    OperatorNode,
    OutputVariableNode,
    Pin,
    PinDirection,
    PushConstantNode,
    UniformNode,
    VariableKind,
    VertexOutputNode,
)
from ._types import ValueType, coerce_literal, is_compatible

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from ._nodes import Node, NodeHandle
    from ._types import LiteralValue

logger = logging.getLogger(__name__)

type _SlotKey = tuple[NodeHandle, int]


class ShaderStage(StrEnum):
    """Pipeline stage a script compiles for."""

    VERTEX = auto()
    FRAGMENT = auto()


@dataclass(frozen=True, slots=True)
class Edge:
    """Directed connection from an output pin to an input pin."""

    source: Pin
    target: Pin

    def __str__(self) -> str:
        return f"{self.source} -> {self.target}"


def _parse_value_type(value_type: ValueType | str) -> ValueType:
    try:
        return ValueType(value_type)
    except ValueError:
        msg = f"Unknown value type: {value_type!r}"
        raise InvalidNodeSpecError(msg) from None


def _check_index(name: str, value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        msg = f"'{name}' must be a non-negative integer, got {value!r}"
        raise InvalidNodeSpecError(msg)
    return value


class Script:
    """A directed acyclic graph of typed shader nodes.

    Nodes live in an arena keyed by integer handles that are allocated
    monotonically and never reused. Edges are stored by their target input
    pin, so an input pin holds at most one edge. Every mutation either
    succeeds completely or raises and leaves the script unchanged.

    A Script is not thread-safe; mutations need exclusive access. Use
    `copy()` to hand an independent snapshot to another thread.

    Example:
        >>> script = Script()
        >>> a = script.create_constant("float32", 1.0)
        >>> b = script.create_constant("int32", 2)
        >>> add = script.create_operator("add", "float32", "float32")
        >>> out = script.create_output("float32", 0)
        >>> _ = script.connect(script.output_pin(a), script.input_pin(add, 0))
        >>> _ = script.connect(script.output_pin(b), script.input_pin(add, 1))
        >>> _ = script.connect(script.output_pin(add), script.input_pin(out))
        >>> script.validate()

    """

    def __init__(self, stage: ShaderStage | str = ShaderStage.FRAGMENT) -> None:
        self._stage = ShaderStage(stage)
        self._nodes: dict[NodeHandle, Node] = {}
        self._edges: dict[_SlotKey, Pin] = {}
        self._defaults: dict[_SlotKey, LiteralValue] = {}
        self._next_handle: NodeHandle = 0

    @property
    def stage(self) -> ShaderStage:
        return self._stage

    def create_node(self, kind: VariableKind | NodeKind | str, **params: Any) -> NodeHandle:
        """Create a node of the given kind.

        `kind` is a variable kind (`input`, `output`, `constant`, `uniform`,
        `push_constant`, `vertex_output`) or a non-variable node kind
        (`operator`, `function`). The keyword parameters are those of the
        matching `create_*` method.

        Raises:
            InvalidNodeSpecError: If the kind is unknown or the parameters
                do not fit it.

        """
        factories = {
            VariableKind.INPUT: self.create_input,
            VariableKind.OUTPUT: self.create_output,
            VariableKind.CONSTANT: self.create_constant,
            VariableKind.UNIFORM: self.create_uniform,
            VariableKind.PUSH_CONSTANT: self.create_push_constant,
            VariableKind.VERTEX_OUTPUT: self.create_vertex_output,
            NodeKind.OPERATOR: self.create_operator,
            NodeKind.FUNCTION: self.create_function,
        }
        factory = factories.get(kind)
        if factory is None:
            msg = f"Unknown node kind: {kind!r}"
            raise InvalidNodeSpecError(msg)
        try:
            return factory(**params)
        except TypeError as e:
            msg = f"Invalid parameters for node kind '{kind}': {e}"
            raise InvalidNodeSpecError(msg) from e

    def create_constant(self, value_type: ValueType | str, value: object) -> NodeHandle:
        """Create a constant holding `value`, validated against `value_type`."""
        value_type = _parse_value_type(value_type)
        literal = coerce_literal(value_type, value)
        return self._insert(lambda h: ConstantNode(handle=h, value_type=value_type, value=literal))

    def create_input(self, value_type: ValueType | str, location: int) -> NodeHandle:
        """Create a stage input variable read from `location`."""
        value_type = self._check_stage_variable(InputVariableNode, value_type, location)
        return self._insert(lambda h: InputVariableNode(handle=h, value_type=value_type, location=location))

    def create_output(self, value_type: ValueType | str, location: int) -> NodeHandle:
        """Create a stage output variable written to `location`."""
        value_type = self._check_stage_variable(OutputVariableNode, value_type, location)
        return self._insert(lambda h: OutputVariableNode(handle=h, value_type=value_type, location=location))

    def create_uniform(
        self,
        value_type: ValueType | str,
        set_index: int,
        binding: int,
        resource: str | None = None,
    ) -> NodeHandle:
        """Create a uniform bound at (`set_index`, `binding`).

        Non-sampler uniforms sharing a set and binding become members of one
        uniform block. A sampler must be alone on its binding.

        Args:
            value_type: Declared type of the uniform.
            set_index: Descriptor set index.
            binding: Binding index inside the set.
            resource: Opaque identifier of the external resource.

        Returns:
            The handle of the new node.

        Raises:
            InvalidNodeSpecError: If the parameters are malformed or the
                binding is already used by a uniform of the other category.

        """
        value_type = _parse_value_type(value_type)
        _check_index("set_index", set_index)
        _check_index("binding", binding)
        if resource is not None and not isinstance(resource, str):
            msg = f"Uniform resource must be a string, got {resource!r}"
            raise InvalidNodeSpecError(msg)
        for other in self._nodes.values():
            if not isinstance(other, UniformNode) or (other.set_index, other.binding) != (set_index, binding):
                continue
            if value_type.is_sampler or other.value_type.is_sampler:
                msg = f"Binding (set={set_index}, binding={binding}) is already used by uniform node {other.handle}"
                raise InvalidNodeSpecError(msg)
        return self._insert(
            lambda h: UniformNode(
                handle=h,
                value_type=value_type,
                set_index=set_index,
                binding=binding,
                resource=resource,
            ),
        )

    def create_push_constant(self, value_type: ValueType | str) -> NodeHandle:
        """Create a member of the push-constant block."""
        value_type = _parse_value_type(value_type)
        if value_type.is_sampler:
            msg = "Samplers cannot be push constants"
            raise InvalidNodeSpecError(msg)
        return self._insert(lambda h: PushConstantNode(handle=h, value_type=value_type))

    def create_vertex_output(self) -> NodeHandle:
        """Create the clip-space position output of a vertex script."""
        if self._stage != ShaderStage.VERTEX:
            msg = f"Vertex output is not available in a {self._stage} script"
            raise InvalidNodeSpecError(msg)
        if any(isinstance(node, VertexOutputNode) for node in self._nodes.values()):
            msg = "Script already has a vertex output"
            raise InvalidNodeSpecError(msg)
        return self._insert(lambda h: VertexOutputNode(handle=h))

    def create_operator(
        self,
        operator: Operator | str,
        left_type: ValueType | str,
        right_type: ValueType | str | None = None,
    ) -> NodeHandle:
        """Create a binary operator node.

        Args:
            operator: Operator identity.
            left_type: Declared type of the left operand.
            right_type: Declared type of the right operand. Defaults to `left_type`.

        Returns:
            The handle of the new node.

        Raises:
            InvalidNodeSpecError: If the operator is unknown or not applicable
                to the operand types.

        """
        try:
            operator = Operator(operator)
        except ValueError:
            msg = f"Unknown operator: {operator!r}"
            raise InvalidNodeSpecError(msg) from None
        left = _parse_value_type(left_type)
        right = _parse_value_type(right_type) if right_type is not None else left
        result = operator_result_type(operator, left, right)
        return self._insert(
            lambda h: OperatorNode(handle=h, operator=operator, left_type=left, right_type=right, result_type=result),
        )

    def create_function(
        self,
        function: str,
        input_types: Iterable[ValueType | str] | None = None,
    ) -> NodeHandle:
        """Create a call of the overload of `function` taking `input_types`.

        `input_types` may be omitted for functions with a single overload.

        Raises:
            InvalidNodeSpecError: If no overload matches.

        """
        types = tuple(_parse_value_type(t) for t in input_types) if input_types is not None else None
        signature = resolve_function(function, types)
        return self._insert(lambda h: FunctionNode(handle=h, signature=signature))

    def _check_stage_variable(
        self,
        node_type: type[InputVariableNode | OutputVariableNode],
        value_type: ValueType | str,
        location: int,
    ) -> ValueType:
        value_type = _parse_value_type(value_type)
        if value_type.is_sampler or value_type == ValueType.BOOL:
            msg = f"Stage variables cannot have type '{value_type}'"
            raise InvalidNodeSpecError(msg)
        _check_index("location", location)
        for other in self._nodes.values():
            if isinstance(other, node_type) and other.location == location:
                msg = f"Location {location} is already used by node {other.handle}"
                raise InvalidNodeSpecError(msg)
        return value_type

    def _insert(self, build: Callable[[NodeHandle], Node]) -> NodeHandle:
        handle = self._next_handle
        node = build(handle)
        self._next_handle += 1
        self._nodes[handle] = node
        logger.debug("Created node %d: %s", handle, node)
        return handle

    def connect(self, output_pin: Pin, input_pin: Pin) -> Edge:
        """Connect `output_pin` to `input_pin`.

        Checks run in this order: both pins resolve, directions are
        output-to-input, the source type is compatible with the target slot,
        and the edge does not close a cycle. An edge already bound to
        `input_pin` is replaced only once every check has passed.

        Args:
            output_pin: Source pin (must be an output).
            input_pin: Target pin (must be an input).

        Returns:
            The inserted edge.

        Raises:
            UnknownNodeError: If either node handle does not resolve.
            UnknownPinError: If either pin index does not resolve.
            InvalidDirectionError: If the pins have the wrong directions.
            TypeMismatchError: If the source type does not fit the target slot.
            CycleDetectedError: If the edge would close a cycle.

        """
        source = self._resolve_pin(output_pin)
        target = self._resolve_pin(input_pin)

        if source.direction != PinDirection.OUTPUT or target.direction != PinDirection.INPUT:
            msg = f"Edges go from an output pin to an input pin, got {source} -> {target}"
            raise InvalidDirectionError(msg)

        if not is_compatible(source.value_type, target.value_type):
            msg = f"Cannot connect {source} ({source.value_type}) to {target} ({target.value_type})"
            raise TypeMismatchError(msg, source=source, target=target)

        if self._reaches(target.node, source.node):
            msg = f"Connecting {source} to {target} would create a cycle"
            raise CycleDetectedError(msg, source=source, target=target)

        replaced = self._edges.get((target.node, target.index))
        self._edges[(target.node, target.index)] = source
        if replaced is not None:
            logger.debug("Replaced edge %s -> %s", replaced, target)
        logger.debug("Connected %s -> %s", source, target)
        return Edge(source=source, target=target)

    def disconnect(self, input_pin: Pin) -> bool:
        """Remove the edge bound to `input_pin`.

        Returns:
            True if an edge was removed, False if the pin was not connected.

        """
        target = self._resolve_input(input_pin)
        removed = self._edges.pop((target.node, target.index), None)
        if removed is not None:
            logger.debug("Disconnected %s -> %s", removed, target)
        return removed is not None

    def set_default(self, input_pin: Pin, value: object) -> None:
        """Give `input_pin` a literal used when no edge is bound to it."""
        target = self._resolve_input(input_pin)
        literal = coerce_literal(target.value_type, value)
        self._defaults[(target.node, target.index)] = literal
        logger.debug("Set default of %s to %r", target, literal)

    def clear_default(self, input_pin: Pin) -> bool:
        """Remove the default of `input_pin`. Returns whether one was set."""
        target = self._resolve_input(input_pin)
        return self._defaults.pop((target.node, target.index), None) is not None

    def remove_node(self, handle: NodeHandle) -> None:
        """Remove a node together with every edge touching it and its defaults.

        Raises:
            UnknownNodeError: If the handle does not resolve.

        """
        if handle not in self._nodes:
            raise UnknownNodeError(handle)
        del self._nodes[handle]
        stale = [key for key, source in self._edges.items() if key[0] == handle or source.node == handle]
        for key in stale:
            del self._edges[key]
        for key in [key for key in self._defaults if key[0] == handle]:
            del self._defaults[key]
        logger.debug("Removed node %d and %d edge(s)", handle, len(stale))

    def _reaches(self, start: NodeHandle, goal: NodeHandle) -> bool:
        """Whether `goal` is reachable from `start` following edges forward."""
        if start == goal:
            return True
        successors: defaultdict[NodeHandle, set[NodeHandle]] = defaultdict(set)
        for (target_node, _), source in self._edges.items():
            successors[source.node].add(target_node)
        visited: set[NodeHandle] = set()
        stack = [start]
        while stack:
            current = stack.pop()
            if current == goal:
                return True
            if current in visited:
                continue
            visited.add(current)
            stack.extend(successors[current])
        return False

    def validate(self) -> None:
        """Check that the script can be compiled.

        Raises:
            UnboundInputError: For the first input pin (by ascending node
                handle, then pin index) with neither an edge nor a default.
            MissingOutputError: If the script has no output node.

        """
        for handle in sorted(self._nodes):
            for pin in self._nodes[handle].input_pins:
                key = (handle, pin.index)
                if key not in self._edges and key not in self._defaults:
                    raise UnboundInputError(pin)
        if not any(isinstance(node, OUTPUT_NODE_TYPES) for node in self._nodes.values()):
            msg = "Script has no output variable"
            raise MissingOutputError(msg)

    def get_node(self, handle: NodeHandle) -> Node:
        """Return the node for `handle`.

        Raises:
            UnknownNodeError: If the handle does not resolve.

        """
        try:
            return self._nodes[handle]
        except KeyError:
            raise UnknownNodeError(handle) from None

    @property
    def nodes(self) -> tuple[Node, ...]:
        """All nodes by ascending handle."""
        return tuple(self._nodes[h] for h in sorted(self._nodes))

    @property
    def edges(self) -> tuple[Edge, ...]:
        """All edges ordered by target node handle, then target pin index."""
        return tuple(
            Edge(source=self._edges[key], target=self._nodes[key[0]].input_pins[key[1]]) for key in sorted(self._edges)
        )

    def input_pin(self, handle: NodeHandle, index: int = 0) -> Pin:
        """Return input pin `index` of node `handle`."""
        return self._pin(handle, PinDirection.INPUT, index)

    def output_pin(self, handle: NodeHandle, index: int = 0) -> Pin:
        """Return output pin `index` of node `handle`."""
        return self._pin(handle, PinDirection.OUTPUT, index)

    def source_of(self, input_pin: Pin) -> Pin | None:
        """Return the output pin wired into `input_pin`, if any."""
        target = self._resolve_input(input_pin)
        return self._edges.get((target.node, target.index))

    def targets_of(self, output_pin: Pin) -> tuple[Pin, ...]:
        """Return the input pins `output_pin` is wired into, ordered by target."""
        source = self._resolve_pin(output_pin)
        return tuple(
            self._nodes[key[0]].input_pins[key[1]]
            for key in sorted(self._edges)
            if self._edges[key].key == source.key
        )

    def default_of(self, input_pin: Pin) -> LiteralValue | None:
        """Return the default literal of `input_pin`, if any."""
        target = self._resolve_input(input_pin)
        return self._defaults.get((target.node, target.index))

    def is_connected(self, pin: Pin) -> bool:
        """Whether an edge touches `pin`."""
        resolved = self._resolve_pin(pin)
        if resolved.direction == PinDirection.INPUT:
            return (resolved.node, resolved.index) in self._edges
        return any(source.key == resolved.key for source in self._edges.values())

    def dependency_graph(self) -> DependencyGraph[NodeHandle]:
        """Return the node-level dependency graph, including isolated nodes."""
        return DependencyGraph.from_edges(
            ((source.node, target_node) for (target_node, _), source in self._edges.items()),
            nodes=self._nodes,
        )

    def copy(self) -> Script:
        """Return an independent snapshot of the script."""
        clone = Script(self._stage)
        clone._nodes = dict(self._nodes)
        clone._edges = dict(self._edges)
        clone._defaults = dict(self._defaults)
        clone._next_handle = self._next_handle
        return clone

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, handle: object) -> bool:
        return handle in self._nodes

    def _pin(self, handle: NodeHandle, direction: PinDirection, index: int) -> Pin:
        node = self.get_node(handle)
        pins = node.input_pins if direction == PinDirection.INPUT else node.output_pins
        if not 0 <= index < len(pins):
            msg = f"Node {handle} has no {direction} pin #{index}"
            raise UnknownPinError(msg)
        return pins[index]

    def _resolve_pin(self, pin: Pin) -> Pin:
        return self._pin(pin.node, pin.direction, pin.index)

    def _resolve_input(self, pin: Pin) -> Pin:
        resolved = self._resolve_pin(pin)
        if resolved.direction != PinDirection.INPUT:
            msg = f"Expected an input pin, got {resolved}"
            raise InvalidDirectionError(msg)
        return resolved
