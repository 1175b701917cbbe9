"""Tokenizer for annotation comment blocks.

Turns the lines of one block comment into a flat list of directives.
``@responseBody 200 - <User>`` becomes ``Directive("responseBody",
"200 - <User>")``; a bare ``@index`` line becomes ``Directive("index", "")``
and names the action the block documents.
"""

import re
from dataclasses import dataclass

DIRECTIVE_RE = re.compile(r"^@([A-Za-z_]\w*)(.*)$")

KNOWN_DIRECTIVES = {
    "summary",
    "description",
    "operationId",
    "responseBody",
    "responseHeader",
    "requestBody",
    "requestFormDataBody",
}


@dataclass(frozen=True)
class Directive:
    name: str
    argument: str
    raw: str

    @property
    def is_param(self) -> bool:
        return self.name.startswith("param")

    @property
    def is_known(self) -> bool:
        return self.name in KNOWN_DIRECTIVES or self.is_param


def clean_comment_lines(text: str) -> list[str]:
    """Strip comment decoration from a block comment body.

    Leading ``*`` gutters are removed, lines trimmed, blank lines dropped.
    """
    lines = []
    for line in text.splitlines():
        line = line.strip()
        if line.startswith("*"):
            line = line.lstrip("*").strip()
        if line:
            lines.append(line)
    return lines


def tokenize(lines: list[str]) -> list[Directive]:
    """Convert trimmed comment lines into directives, ignoring plain prose."""
    directives = []
    for line in lines:
        match = DIRECTIVE_RE.match(line)
        if match is None:
            continue
        directives.append(Directive(name=match.group(1), argument=match.group(2).strip(), raw=line))
    return directives


def action_names(directives: list[Directive]) -> list[str]:
    """Bare, unknown directives name the actions a block documents."""
    return [d.name for d in directives if not d.is_known and d.argument == ""]
