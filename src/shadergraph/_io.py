from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import TYPE_CHECKING, Any

import tomli_w
from pydantic import ValidationError

from ._document import LoadedScript, ScriptDocument, ScriptFileError, document_to_script, script_to_document

if TYPE_CHECKING:
    from ._script import Script

logger = logging.getLogger(__name__)


def script_from_dict(data: dict[str, Any]) -> LoadedScript:
    """Validate parsed TOML contents and build the script they describe.

    This is a pure function: the schema is checked with pydantic first, then
    the script is built node by node.

    Args:
        data: The parsed TOML dictionary.

    Returns:
        The script and the mapping from node ids to handles.

    Raises:
        ScriptFileError: If the contents do not match the schema.
        ShaderGraphError: If the described graph is invalid (propagated unchanged).

    """
    try:
        document = ScriptDocument.model_validate(data)
    except ValidationError as e:
        msg = f"Invalid script file: {e}"
        raise ScriptFileError(msg) from e
    return document_to_script(document)


def loads_script(text: str) -> LoadedScript:
    """Load a script from TOML text."""
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        msg = f"Invalid TOML: {e}"
        raise ScriptFileError(msg) from e
    return script_from_dict(data)


def load_script(path: Path | str) -> LoadedScript:
    """Load a script from a TOML file.

    Args:
        path: Path to the script file.

    Returns:
        The script and the mapping from node ids to handles.

    Raises:
        ScriptFileError: If the file is not valid TOML or does not match the schema.
        OSError: If the file cannot be read.

    """
    path = Path(path)
    with path.open("rb") as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            msg = f"Invalid TOML in {path}: {e}"
            raise ScriptFileError(msg) from e
    loaded = script_from_dict(data)
    logger.debug("Loaded script from %s", path)
    return loaded


def dump_script(script: Script, names: dict[int, str] | None = None) -> dict[str, Any]:
    """Convert a script to a TOML-ready dictionary.

    Args:
        script: The script to convert.
        names: Node ids by handle. Nodes without a name get `n<handle>`.

    Returns:
        A dictionary that `script_from_dict` turns back into an equivalent script.

    Raises:
        ScriptFileError: If the names clash, for instance a name equal to
            another node's `n<handle>` fallback.

    """
    document = script_to_document(script, names)
    return document.model_dump(mode="json", by_alias=True, exclude_none=True)


def save_script(script: Script, path: Path | str, names: dict[int, str] | None = None) -> None:
    """Write a script to a TOML file."""
    data = dump_script(script, names)
    path = Path(path)
    with path.open("wb") as f:
        tomli_w.dump(data, f)
    logger.debug("Saved script to %s", path)
