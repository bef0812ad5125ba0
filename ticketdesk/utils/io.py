"""File I/O utilities: JSON feed reading and the key-value override store."""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol

type FilePath = str | Path

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """Text store holding one string value per key."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


class MemoryStore:
    """Dict-backed store; nothing survives the process."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value


class FileStore:
    """One ``<key>.json`` file per key inside ``directory``."""

    def __init__(self, directory: FilePath) -> None:
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)

        # Whole-value replace so readers never see a partial map
        fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(value)
            Path(tmp).replace(path)
        except OSError:
            Path(tmp).unlink(missing_ok=True)
            raise
        logger.debug("Wrote %d bytes to %s", len(value), path)


def read_json_file(path: FilePath) -> object:
    """Read and parse a JSON document."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Could not find {path}")
    with open(path, encoding="utf-8") as fh:
        return json.load(fh)
