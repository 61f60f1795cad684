"""Text round trip for configurations containing transforms.

``json.dumps`` cannot represent a ``NamedTransform``, so the serializer's
``default`` hook emits the transform's ``require(...)`` source as a JSON
string and records it.  A second pass then un-quotes exactly those recorded
strings (reversing the JSON escaping of quotes, newlines and backslashes)
so they become live expressions again, while every ordinary string stays
quoted.  The result is valid program text for ``ConfigSandbox``.
"""

from __future__ import annotations

import json
import re
from typing import Any

from .transforms import NamedTransform

_JSON_STRING_RE = re.compile(r'"(?:[^"\\]|\\.)*"')

_TRANSFORM_SOURCE_RE = re.compile(r'^require\("[^"\\]+"\)(\(.*\))?$', re.DOTALL)


def serialize_config(config: dict[str, Any]) -> str:
    """Serialize *config* to JSON-like text with transforms left unquoted.

    Examples::

        serialize_config({"plugins": [require("tailwindcss-animate")]})
            -> '{\\n  "plugins": [\\n    require("tailwindcss-animate")\\n  ]\\n}'
    """
    sources: set[str] = set()

    def _default(value: Any) -> Any:
        if isinstance(value, NamedTransform):
            sources.add(value.source)
            return value.source
        raise TypeError(f"Object of type {type(value).__name__} is not serializable")

    text = json.dumps(config, default=_default, indent=2, ensure_ascii=False)
    return unquote_transforms(text, sources)


def unquote_transforms(text: str, sources: set[str]) -> str:
    """Replace quoted transform sources in *text* with their raw source."""
    if not sources:
        return text

    def _replace(m: re.Match[str]) -> str:
        quoted = m.group(0)
        raw = json.loads(quoted)
        if raw in sources and _TRANSFORM_SOURCE_RE.match(raw):
            return raw
        return quoted

    return _JSON_STRING_RE.sub(_replace, text)


def build_program(before: str, serialized: str, after: str) -> str:
    """Reassemble ``before`` + ``module.exports = <serialized>;`` + ``after``."""
    parts = [before.rstrip(), f"module.exports = {serialized};", after.strip()]
    return "\n".join(part for part in parts if part) + "\n"
