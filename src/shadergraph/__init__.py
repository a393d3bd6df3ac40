"""Visual shader graph compiler."""

__all__ = [
    "Binding",
    "ConstantNode",
    "CycleDetectedError",
    "DependencyGraph",
    "Edge",
    "ErrorKind",
    "FunctionNode",
    "FunctionSignature",
    "FunctionType",
    "InputVariableNode",
    "InterfaceKind",
    "InterfaceVariable",
    "InternalInvariantViolation",
    "InvalidDirectionError",
    "InvalidNodeSpecError",
    "LoadedScript",
    "LoweringResult",
    "MissingOutputError",
    "Node",
    "NodeKind",
    "Operator",
    "OperatorNode",
    "OperatorType",
    "OutputAssignment",
    "OutputVariableNode",
    "Pin",
    "PinDirection",
    "PushConstantNode",
    "Script",
    "ScriptDocument",
    "ScriptFileError",
    "ShaderGraphError",
    "ShaderStage",
    "TypeMismatchError",
    "UnboundInputError",
    "UniformNode",
    "UnknownNodeError",
    "UnknownPinError",
    "ValueType",
    "VariableKind",
    "VertexOutputNode",
    "common_type",
    "dump_script",
    "generate_glsl",
    "is_compatible",
    "load_script",
    "loads_script",
    "lower_script",
    "operator_result_type",
    "resolve_function",
    "save_script",
]

from ._catalog import FunctionSignature, FunctionType, Operator, OperatorType, operator_result_type, resolve_function
from ._document import LoadedScript, ScriptDocument, ScriptFileError
from ._errors import (
    CycleDetectedError,
    ErrorKind,
    InternalInvariantViolation,
    InvalidDirectionError,
    InvalidNodeSpecError,
    MissingOutputError,
    ShaderGraphError,
    TypeMismatchError,
    UnboundInputError,
    UnknownNodeError,
    UnknownPinError,
)
from ._glsl import generate_glsl
from ._graph import DependencyGraph
from ._io import dump_script, load_script, loads_script, save_script
from ._lowering import Binding, InterfaceKind, InterfaceVariable, LoweringResult, OutputAssignment, lower_script
from ._nodes import (
    ConstantNode,
    FunctionNode,
    InputVariableNode,
    Node,
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
from ._script import Edge, Script, ShaderStage
from ._types import ValueType, common_type, is_compatible
