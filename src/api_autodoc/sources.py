"""Source-blob collaborators.

The generator never touches the filesystem itself; it asks a SourceLoader
for controller sources by logical path (``app/controllers/users_controller``)
and for the model and interface blobs of the application.
"""

import logging
from pathlib import Path
from typing import Protocol

from api_autodoc.schema.base import SourceBlob

logger = logging.getLogger(__name__)

CATEGORY_DIRS = {
    "models": ("app/models", "app/Models"),
    "interfaces": ("app/interfaces", "app/Interfaces"),
}


class SourceLoader(Protocol):
    def read(self, logical_path: str) -> str: ...

    def list_sources(self, category: str) -> list[SourceBlob]: ...


class FileSystemSourceLoader:
    """Reads sources below an application root directory.

    Unreadable controller files raise OSError: a missing source is a
    configuration problem, not an authoring mistake.
    """

    def __init__(self, root: Path, extension: str = ".ts"):
        self.root = Path(root)
        self.extension = extension

    def read(self, logical_path: str) -> str:
        path = self.root / (logical_path + self.extension)
        logger.debug("Reading %s", path)
        return path.read_text(encoding="utf-8")

    def list_sources(self, category: str) -> list[SourceBlob]:
        directory = self._category_dir(category)
        if directory is None:
            return []
        blobs = []
        for path in sorted(directory.rglob("*" + self.extension)):
            if path.is_file():
                relative = path.relative_to(self.root).as_posix()
                blobs.append(SourceBlob(path=relative, text=path.read_text(encoding="utf-8")))
        return blobs

    def _category_dir(self, category: str) -> Path | None:
        for candidate in CATEGORY_DIRS.get(category, ()):
            directory = self.root / candidate
            if directory.is_dir():
                return directory
        logger.info("No %s directory below %s", category, self.root)
        return None


class InMemorySourceLoader:
    """Serves sources from dictionaries; handy for embedding and tests."""

    def __init__(self, controllers: dict[str, str] | None = None, blobs: dict[str, list[SourceBlob]] | None = None):
        self.controllers = controllers or {}
        self.blobs = blobs or {}
        self.reads: list[str] = []

    def read(self, logical_path: str) -> str:
        self.reads.append(logical_path)
        if logical_path not in self.controllers:
            raise FileNotFoundError(logical_path)
        return self.controllers[logical_path]

    def list_sources(self, category: str) -> list[SourceBlob]:
        return list(self.blobs.get(category, []))
