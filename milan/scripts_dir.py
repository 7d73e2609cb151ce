"""
Script catalog: the configured scripts directory and what is installed in it.
"""

from __future__ import annotations

import os
import pathlib
import re
from typing import List

# ASCII letters, digits, "_" and "-"; no dots, slashes, percent signs or spaces
SCRIPT_NAME_RE = re.compile(r"[A-Za-z0-9_-]+")


def is_valid_script_name(name: str) -> bool:
    return SCRIPT_NAME_RE.fullmatch(name) is not None


class ScriptCatalog:
    """
    Read-only view of the scripts directory.

    A script ``name`` lives at ``<directory>/<name><extension>``. When scripts
    are run directly (no interpreter), only files with an executable bit
    count as installed in listings.
    """

    def __init__(self, directory: pathlib.Path, extension: str, require_executable: bool = False):
        self.directory = directory
        self.extension = extension
        self.require_executable = require_executable

    def path_for(self, name: str) -> pathlib.Path:
        """Location of script ``name``; the name must already be validated."""
        return self.directory / f"{name}{self.extension}"

    def _is_listed(self, entry: os.DirEntry) -> bool:
        if not entry.name.endswith(self.extension):
            return False
        if not is_valid_script_name(self._strip(entry.name)):
            return False
        try:
            if not entry.is_file():
                return False
        except OSError:
            return False
        if self.require_executable:
            return os.access(entry.path, os.X_OK)
        return True

    def _strip(self, filename: str) -> str:
        return filename[: len(filename) - len(self.extension)] if self.extension else filename

    def list_names(self) -> List[str]:
        """Installed script names, extension stripped, sorted ascending."""
        try:
            with os.scandir(self.directory) as it:
                names = [
                    self._strip(entry.name)
                    for entry in it
                    if self._is_listed(entry)
                ]
        except FileNotFoundError:
            return []
        return sorted(names)
