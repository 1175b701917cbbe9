"""Low-level helpers for pulling tokens out of a single annotation line.

Every helper here is silent on absence: a missing token is an empty
string (or None for JSON), never an exception.
"""

import json
import re

NUMERIC_TYPES = {"integer", "number", "float"}


def between_brackets(text: str, token: str) -> str:
    """Return the content of the first ``token(...)`` in *text*.

    Spaces are removed from the result unless the token is ``example``,
    whose value may be a human-readable sentence.
    """
    match = re.search(re.escape(token) + r"\(([^()]*)\)", text)
    if match is None:
        return ""
    value = match.group(1)
    if token != "example":
        value = value.replace(" ", "")
    return value


def split_list(value: str) -> list[str]:
    """Split a comma-separated token value, dropping empty entries."""
    return [v for v in value.split(",") if v != ""]


def extract_json_fragment(text: str) -> str:
    """Return the text from the first ``{`` to the last ``}``, inclusive."""
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end < start:
        return ""
    return text[start : end + 1]


def extract_schema_ref(text: str) -> str:
    """Return the text between the first ``<`` and the last ``>``."""
    start = text.find("<")
    end = text.rfind(">")
    if start == -1 or end < start:
        return ""
    return text[start + 1 : end].strip()


def parse_json_object(text: str) -> dict | None:
    """Parse *text* as a JSON object, returning None when it is not one."""
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, ValueError):
        return None
    if not isinstance(data, dict):
        return None
    return data


def parse_append(text: str) -> dict:
    """Parse the body of an ``append(...)`` token into a dict of overrides.

    The token holds the members of a JSON object without the braces,
    e.g. ``append("total":10)``.
    """
    value = between_brackets(text, "append")
    if value == "":
        return {}
    return parse_json_object("{" + value + "}") or {}


def coerce_example(value, type_name: str):
    """Turn a textual example into a number for numeric types."""
    if not isinstance(value, str) or type_name not in NUMERIC_TYPES:
        return value
    try:
        if type_name == "integer":
            return int(value)
        return float(value) if "." in value else int(value)
    except ValueError:
        return value
