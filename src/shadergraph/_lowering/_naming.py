"""Identifier allocation for lowered variables."""

from collections import defaultdict

from shadergraph._nodes import ConstantNode, FunctionNode, OperatorNode
from shadergraph._types import ValueType


class NameCounters:
    """Per-prefix counters producing `<prefix>_<n>` identifiers.

    Variable counters (one per GLSL type name) are shared by local constants,
    vector constructors and block members; `reset_variables` restarts them
    after each block so members are numbered per block.
    """

    def __init__(self) -> None:
        self._counts: defaultdict[str, int] = defaultdict(int)

    def next(self, prefix: str) -> str:
        index = self._counts[prefix]
        self._counts[prefix] += 1
        return f"{prefix}_{index}"

    def reset_variables(self) -> None:
        for value_type in ValueType:
            self._counts.pop(value_type.glsl_name, None)

    def for_node(self, node: ConstantNode | OperatorNode | FunctionNode) -> str:
        """Allocate the identifier of the local variable a node binds."""
        match node:
            case ConstantNode():
                return self.next(node.value_type.glsl_name)
            case OperatorNode():
                return self.next(node.operator.prefix)
            case FunctionNode() if node.function.is_constructor:
                return self.next(node.signature.output.glsl_name)
            case FunctionNode():
                return self.next(node.function.glsl_name)
