"""
Path resolution: ``/<script>/<arg...>`` -> script file + argument string.
"""

from __future__ import annotations

import pathlib
from dataclasses import dataclass
from urllib.parse import unquote

from .errors import InvalidScriptName, NoScriptSpecified, ScriptNotFound
from .scripts_dir import ScriptCatalog, is_valid_script_name


@dataclass(frozen=True)
class ResolvedScript:
    name: str
    path: pathlib.Path
    argument: str


def split_path(raw_path: str) -> tuple[str, str]:
    """
    Split a raw (still percent-encoded) request path into name and argument.

    Empty segments are dropped. The argument is every segment after the
    first, joined with ``/`` and then percent-decoded, so ``%2F`` inside an
    argument becomes a literal slash and ``%20`` a space.

    Raises:
        NoScriptSpecified: The path has no non-empty segment
    """
    parts = [p for p in raw_path.split("/") if p]
    if not parts:
        raise NoScriptSpecified()
    return parts[0], unquote("/".join(parts[1:]))


def resolve_path(raw_path: str, catalog: ScriptCatalog) -> ResolvedScript:
    """
    Resolve a request path to an installed script.

    The script name is validated before the filesystem is touched; the
    only filesystem access is a single existence check.

    Raises:
        NoScriptSpecified: 404, nothing after the slash
        InvalidScriptName: 403, name outside ``[A-Za-z0-9_-]+``
        ScriptNotFound: 404, no such file in the scripts directory
    """
    name, argument = split_path(raw_path)

    if not is_valid_script_name(name):
        raise InvalidScriptName(name)

    path = catalog.path_for(name)
    if not path.is_file():
        raise ScriptNotFound(name)

    return ResolvedScript(name=name, path=path, argument=argument)
