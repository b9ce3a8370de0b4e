"""Filesystem-backed key/value stores shared by every pipeline step."""

import os
import shutil
from dataclasses import dataclass

from stepgen.errors import NotFoundError


class DB:
    """A namespace of named text blobs rooted at a directory.

    Keys are relative paths and may contain separators. Values are stored
    byte-for-byte as UTF-8 text; no newline translation happens in either
    direction, so write(k, v) followed by read(k) returns exactly v.
    """

    def __init__(self, path: str):
        self.path = os.path.abspath(path)
        os.makedirs(self.path, exist_ok=True)

    def _full_path(self, key: str) -> str:
        return os.path.join(self.path, key)

    def exists(self, key: str) -> bool:
        return os.path.isfile(self._full_path(key))

    def read(self, key: str) -> str:
        full_path = self._full_path(key)
        if not os.path.isfile(full_path):
            raise NotFoundError(f"File '{key}' could not be found in '{self.path}'")
        with open(full_path, "r", encoding="utf-8", newline="") as f:
            return f.read()

    def read_optional(self, key: str, default: str | None = None) -> str | None:
        """Return the value stored at *key*, or *default* when it is absent."""
        try:
            return self.read(key)
        except NotFoundError:
            return default

    def write(self, key: str, text: str) -> None:
        full_path = self._full_path(key)
        os.makedirs(os.path.dirname(full_path), exist_ok=True)
        with open(full_path, "w", encoding="utf-8", newline="") as f:
            f.write(text)

    def __contains__(self, key: str) -> bool:
        return self.exists(key)

    def __getitem__(self, key: str) -> str:
        return self.read(key)

    def __setitem__(self, key: str, text: str) -> None:
        self.write(key, text)

    def __repr__(self) -> str:
        return f"DB({self.path!r})"


@dataclass
class DBs:
    """The fixed bundle of stores passed by reference to every step."""

    memory: DB
    logs: DB
    preprompts: DB
    input: DB
    workspace: DB


def reset_namespaces(*paths: str) -> None:
    """Remove each directory tree entirely. Missing paths are ignored.

    Used by --delete-existing to wipe memory and workspace before the stores
    are recreated empty.
    """
    for path in paths:
        if os.path.isdir(path):
            shutil.rmtree(path)
        elif os.path.exists(path):
            os.remove(path)
