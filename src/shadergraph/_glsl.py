"""GLSL source printer for lowered scripts (Vulkan flavour)."""

from __future__ import annotations

import logging
from itertools import groupby
from typing import TYPE_CHECKING

from ._lowering import InterfaceKind

if TYPE_CHECKING:
    from ._lowering import InterfaceVariable, LoweringResult

logger = logging.getLogger(__name__)

DEFAULT_GLSL_VERSION = 450


def _header(version: int) -> list[str]:
    return [
        f"#version {version}\n",
        "#extension GL_ARB_separate_shader_objects : enable\n",
        "\n",
    ]


def _stage_variables(variables: tuple[InterfaceVariable, ...], qualifier: str) -> list[str]:
    if not variables:
        return []
    lines = [
        f"layout(location = {v.location}) {qualifier} {v.value_type.glsl_name} {v.identifier};\n" for v in variables
    ]
    return [*lines, "\n"]


def _push_constant_block(members: tuple[InterfaceVariable, ...]) -> list[str]:
    if not members:
        return []
    lines = ["layout(std140, push_constant) uniform s_pc\n", "{\n"]
    lines.extend(f"layout(offset = {m.offset}) {m.value_type.glsl_name} {m.member};\n" for m in members)
    lines.extend(["} pc;\n", "\n"])
    return lines


def _uniforms(uniforms: tuple[InterfaceVariable, ...]) -> list[str]:
    if not uniforms:
        return []
    lines: list[str] = []
    for _, group in groupby(uniforms, key=lambda u: (u.set_index, u.binding)):
        variables = list(group)
        first = variables[0]
        if first.kind == InterfaceKind.SAMPLER:
            lines.append(
                f"layout(set = {first.set_index}, binding = {first.binding}) uniform "
                f"{first.value_type.glsl_name} {first.identifier};\n",
            )
            continue
        lines.append(f"layout(std140, set = {first.set_index}, binding={first.binding}) uniform s_{first.block}\n")
        lines.append("{\n")
        lines.extend(f"{v.value_type.glsl_name} {v.member};\n" for v in variables)
        lines.append(f"}} {first.block};\n")
    lines.append("\n")
    return lines


def _main(result: LoweringResult) -> list[str]:
    lines = ["void main()\n", "{\n"]
    lines.extend(f"{b.value_type.glsl_name} {b.identifier} = {b.expression};\n" for b in result.bindings)
    lines.extend(f"{a.target} = {a.expression};\n" for a in result.assignments)
    lines.append("}\n")
    return lines


def generate_glsl(result: LoweringResult, *, version: int = DEFAULT_GLSL_VERSION) -> str:
    """Print a lowered script as GLSL source.

    The layout is: version header, stage inputs, the push-constant block,
    uniform blocks and samplers, stage outputs, then `main()` with the
    bindings followed by the output assignments.

    Args:
        result: A successful lowering result.
        version: Value of the `#version` directive.

    Returns:
        The GLSL source text, ending with a newline.

    Raises:
        ShaderGraphError: The error carried by an unsuccessful result.

    """
    result.raise_for_error()
    lines = [
        *_header(version),
        *_stage_variables(result.inputs, "in"),
        *_push_constant_block(result.push_constants),
        *_uniforms(result.uniforms),
        *_stage_variables(result.outputs, "out"),
        *_main(result),
    ]
    source = "".join(lines)
    logger.debug("Generated %d line(s) of GLSL %d", source.count("\n"), version)
    return source
