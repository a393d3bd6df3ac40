import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from shadergraph._document import LoadedScript, ScriptFileError
from shadergraph._errors import ShaderGraphError
from shadergraph._glsl import generate_glsl
from shadergraph._io import load_script
from shadergraph._lowering import LoweringResult, lower_script
from shadergraph._script import ShaderStage

from .config import ConfigError, ShaderGraphConfig, get_config
from .graph_query import list_nodes
from .graph_render import render_binding_table, render_node_table

app = typer.Typer()

logger = logging.getLogger(__name__)
# Console for stderr (info/errors)
err_console = Console(stderr=True)
# Console for stdout (results)
out_console = Console()

_STAGE_SUFFIXES = {
    ShaderStage.VERTEX: ".vert",
    ShaderStage.FRAGMENT: ".frag",
}

ScriptArgument = Annotated[Path, typer.Argument(help="Path to the script TOML file")]


@app.callback()
def callback(
    *,
    verbose: bool = typer.Option(default=False, help="Enable verbose output"),
) -> None:
    """Shader graph compiler CLI."""
    log_level = logging.DEBUG if verbose else logging.INFO

    # Configure rich logging handler to output to stderr
    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        handlers=[
            RichHandler(
                console=err_console,
                show_time=False,
                show_path=verbose,
                rich_tracebacks=True,
            ),
        ],
    )


def _fail(message: str) -> typer.Exit:
    err_console.print(f"[red]✗ {escape(message)}[/red]")
    return typer.Exit(code=1)


def _load_config() -> ShaderGraphConfig:
    try:
        return get_config()
    except ConfigError as e:
        raise _fail(f"Configuration error: {e}") from e


def _load(path: Path) -> LoadedScript:
    err_console.print(f"[cyan]Loading script from:[/cyan] {path}")
    try:
        return load_script(path)
    except OSError as e:
        raise _fail(f"Cannot read {path}: {e}") from e
    except (ScriptFileError, ShaderGraphError) as e:
        raise _fail(str(e)) from e


def _lower(loaded: LoadedScript, *, prune_unused: bool) -> LoweringResult:
    result = lower_script(loaded.script, prune_unused=prune_unused)
    if not result.success:
        error = result.error
        raise _fail(f"{error.kind}: {error}")  # type: ignore[union-attr]
    return result


@app.command("compile")
def compile_command(
    script: ScriptArgument,
    *,
    output: Annotated[
        Path | None,
        typer.Option("-o", "--output", help="Path to the output GLSL file (default: stdout)"),
    ] = None,
    glsl_version: Annotated[
        int | None,
        typer.Option("--glsl-version", help="Value of the #version directive"),
    ] = None,
    prune: Annotated[
        bool | None,
        typer.Option("--prune/--no-prune", help="Only emit nodes the outputs depend on"),
    ] = None,
) -> None:
    """Compile a script to GLSL source."""
    config = _load_config()
    loaded = _load(script)
    result = _lower(loaded, prune_unused=config.prune_unused if prune is None else prune)
    source = generate_glsl(result, version=config.glsl_version if glsl_version is None else glsl_version)

    if output is None and config.output_dir is not None:
        output = config.output_dir / (script.stem + _STAGE_SUFFIXES[result.stage])

    if output is None:
        typer.echo(source, nl=False)
        return

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(source)
    err_console.print(f"[cyan]GLSL written to:[/cyan] {output}")
    err_console.print("[green]✓ Compilation complete[/green]")


@app.command()
def check(script: ScriptArgument) -> None:
    """Check that a script is valid and compiles, without writing anything."""
    loaded = _load(script)
    _lower(loaded, prune_unused=False)
    n_edges = len(loaded.script.edges)
    err_console.print(
        f"[green]✓ Script is valid[/green] [dim]({len(loaded.script)} nodes, {n_edges} edges, "
        f"{loaded.script.stage} stage)[/dim]",
    )


@app.command()
def nodes(script: ScriptArgument) -> None:
    """List the nodes of a script."""
    loaded = _load(script)
    render_node_table(list_nodes(loaded), out_console)


@app.command()
def bindings(
    script: ScriptArgument,
    *,
    prune: Annotated[
        bool,
        typer.Option("--prune/--no-prune", help="Only list nodes the outputs depend on"),
    ] = False,
) -> None:
    """List the statements a script lowers to, in emission order."""
    loaded = _load(script)
    result = _lower(loaded, prune_unused=prune)
    render_binding_table(result, out_console)


def main() -> None:
    app()
