"""Document codecs: how entities are laid out as store content.

Findings are human-readable markdown with a header block of ``key: <json>``
lines; every other entity is indented JSON.
"""

from __future__ import annotations

import json
import re
from typing import TypeVar

from pydantic import BaseModel, ValidationError

from agentboard.core.blackboard.models import Finding
from agentboard.errors import DocumentParseError

M = TypeVar("M", bound=BaseModel)

_FINDING_RE = re.compile(r"\A---\n(.*?)\n---\n\n# (.*?)\n\n(.*)\Z", re.DOTALL)

_HEADER_REQUIRED = ("id", "agent_id", "topic", "confidence", "status", "scope", "created_at")
_HEADER_OPTIONAL = ("severity", "context_id", "parent_id", "references", "ttl", "metadata")


def encode_finding(finding: Finding) -> str:
    """Render *finding* as a markdown document with a JSON-valued header."""
    data = finding.model_dump(mode="json")
    header = {key: data[key] for key in _HEADER_REQUIRED}
    for key in _HEADER_OPTIONAL:
        if data.get(key):
            header[key] = data[key]
    lines = "\n".join(f"{key}: {json.dumps(value)}" for key, value in header.items())
    # The title line ends at the first newline on decode.
    title = " ".join(part for part in finding.title.splitlines() if part.strip())
    return f"---\n{lines}\n---\n\n# {title}\n\n{finding.content}\n"


def decode_finding(content: str, path: str = "") -> Finding:
    """Parse a finding document.

    Raises:
        DocumentParseError: If the layout or any header value is invalid.
    """
    match = _FINDING_RE.match(content)
    if match is None:
        raise DocumentParseError(path, "missing header block or title")

    header: dict[str, object] = {}
    for line in match.group(1).splitlines():
        key, sep, raw = line.partition(": ")
        if not key or not sep:
            continue
        try:
            header[key] = json.loads(raw)
        except json.JSONDecodeError:
            header[key] = raw

    try:
        return Finding.model_validate(
            {**header, "title": match.group(2), "content": match.group(3).strip()}
        )
    except ValidationError as exc:
        raise DocumentParseError(path, str(exc)) from exc


def encode_json(model: BaseModel) -> str:
    return model.model_dump_json(indent=2)


def decode_json(model_cls: type[M], content: str, path: str = "") -> M:
    """Validate JSON *content* as *model_cls*, raising :class:`DocumentParseError`."""
    try:
        return model_cls.model_validate_json(content)
    except ValidationError as exc:
        raise DocumentParseError(path, str(exc)) from exc
