"""Lowering pass from a script to an ordered program.

This module turns a validated Script into the contract consumed by code
generators: ordered `(identifier, type, expression)` bindings, output
assignments, and interface declarations with their slot metadata.

Key types:
- LoweringResult: Immutable result carrying the program or the first error
- Binding, OutputAssignment: Statements of `main()`
- InterfaceVariable: Declarations outside `main()`
- lower_script: Pure function lowering a Script
"""

from ._engine import lower_script
from ._literals import format_float, format_literal
from ._result import Binding, InterfaceKind, InterfaceVariable, LoweringResult, OutputAssignment

__all__ = [
    "Binding",
    "InterfaceKind",
    "InterfaceVariable",
    "LoweringResult",
    "OutputAssignment",
    "format_float",
    "format_literal",
    "lower_script",
]
