"""Block-comment extraction and the per-run parsed-file cache."""

import logging
import re
from typing import Protocol

from api_autodoc.parser.annotations import AnnotationParser
from api_autodoc.parser.base import AnnotationRecord
from api_autodoc.parser.directives import action_names, clean_comment_lines, tokenize

logger = logging.getLogger(__name__)

BLOCK_COMMENT_RE = re.compile(r"/\*(.*?)\*/", re.DOTALL)


class ControllerReader(Protocol):
    def read(self, logical_path: str) -> str: ...


def extract_block_comments(source: str) -> list[str]:
    """Return the bodies of all ``/* ... */`` comments in *source*."""
    return [match.group(1) for match in BLOCK_COMMENT_RE.finditer(source)]


def parse_controller(source: str, parser: AnnotationParser) -> dict[str, AnnotationRecord]:
    """Parse every annotated action in one controller source.

    A block documents the actions named by its bare ``@action`` lines.
    """
    annotations: dict[str, AnnotationRecord] = {}
    for comment in extract_block_comments(source):
        directives = tokenize(clean_comment_lines(comment))
        for action in action_names(directives):
            annotations[action] = parser.parse_directives(directives, action)
    return annotations


class AnnotationCache:
    """Parses each controller file at most once per generation run.

    The first request for a file reads and parses it completely; later
    requests for any action of the same file are served from memory.
    """

    def __init__(self, reader: ControllerReader, parser: AnnotationParser):
        self.reader = reader
        self.parser = parser
        self._files: dict[str, dict[str, AnnotationRecord]] = {}

    def annotations_for(self, source_file: str) -> dict[str, AnnotationRecord]:
        if source_file not in self._files:
            source = self.reader.read(source_file)
            self._files[source_file] = parse_controller(source, self.parser)
            logger.debug("Parsed %d annotated actions in %s", len(self._files[source_file]), source_file)
        return self._files[source_file]

    def get(self, source_file: str, action: str) -> AnnotationRecord | None:
        return self.annotations_for(source_file).get(action)

    @property
    def parsed_files(self) -> list[str]:
        return list(self._files)
