"""Configuration loading from pyproject.toml."""

import tomllib
from dataclasses import dataclass
from pathlib import Path

from shadergraph._glsl import DEFAULT_GLSL_VERSION


class ConfigError(Exception):
    """Error in shadergraph configuration."""


@dataclass(slots=True, frozen=True)
class ShaderGraphConfig:
    """Configuration loaded from pyproject.toml.

    All relative paths are resolved from the project root (directory containing pyproject.toml).
    """

    glsl_version: int = DEFAULT_GLSL_VERSION
    prune_unused: bool = False
    output_dir: Path | None = None
    project_root: Path | None = None


def find_pyproject_toml(start_dir: Path | None = None) -> Path | None:
    """Find pyproject.toml by walking up from start_dir.

    Args:
        start_dir: Starting directory. Defaults to current working directory.

    Returns:
        Path to pyproject.toml if found, None otherwise.

    """
    if start_dir is None:
        start_dir = Path.cwd()

    current = start_dir.resolve()

    while True:
        candidate = current / "pyproject.toml"
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            # Reached filesystem root
            return None
        current = parent


def load_config(pyproject_path: Path) -> ShaderGraphConfig:
    """Load and validate [tool.shadergraph] config from pyproject.toml.

    Args:
        pyproject_path: Path to pyproject.toml

    Returns:
        Parsed ShaderGraphConfig

    Raises:
        ConfigError: If the configuration is invalid

    """
    project_root = pyproject_path.parent

    with pyproject_path.open("rb") as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            msg = f"Invalid TOML in {pyproject_path}: {e}"
            raise ConfigError(msg) from e

    section = data.get("tool", {}).get("shadergraph", {})
    if not section:
        return ShaderGraphConfig(project_root=project_root)

    unknown = set(section) - {"glsl_version", "prune_unused", "output_dir"}
    if unknown:
        msg = f"Unknown [tool.shadergraph] key(s): {', '.join(sorted(unknown))}"
        raise ConfigError(msg)

    glsl_version = section.get("glsl_version", DEFAULT_GLSL_VERSION)
    if isinstance(glsl_version, bool) or not isinstance(glsl_version, int) or glsl_version <= 0:
        msg = "Invalid [tool.shadergraph].glsl_version: expected positive integer"
        raise ConfigError(msg)

    prune_unused = section.get("prune_unused", False)
    if not isinstance(prune_unused, bool):
        msg = "Invalid [tool.shadergraph].prune_unused: expected boolean"
        raise ConfigError(msg)

    output_dir: Path | None = None
    if "output_dir" in section:
        output_value = section["output_dir"]
        if not isinstance(output_value, str):
            msg = "Invalid [tool.shadergraph].output_dir: expected string path"
            raise ConfigError(msg)
        output_dir = Path(output_value)
        if not output_dir.is_absolute():
            output_dir = project_root / output_dir

    return ShaderGraphConfig(
        glsl_version=glsl_version,
        prune_unused=prune_unused,
        output_dir=output_dir,
        project_root=project_root,
    )


def get_config() -> ShaderGraphConfig:
    """Get config from pyproject.toml in current directory or parents.

    Returns:
        ShaderGraphConfig (defaults if no pyproject.toml or no [tool.shadergraph] section)

    """
    pyproject_path = find_pyproject_toml()
    if pyproject_path is None:
        return ShaderGraphConfig()
    return load_config(pyproject_path)
