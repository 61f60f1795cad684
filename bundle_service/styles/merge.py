"""Deep merge of style configuration objects."""

from __future__ import annotations

import copy
from typing import Any

from .transforms import NamedTransform


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge *override* onto a copy of *base*.

    - nested objects merge recursively; base keys survive unless overridden
    - lists are concatenated, and a transform already present in the base
      list is not added twice
    - any other override value replaces the base value; ``None``
      (``undefined``/``null``) never erases an existing value

    Neither input is mutated.

    Examples::

        deep_merge({"a": {"x": 1}}, {"a": {"y": 2}})  -> {"a": {"x": 1, "y": 2}}
        deep_merge({"p": [1]}, {"p": [2]})             -> {"p": [1, 2]}
    """
    result = _copy(base)
    for key, value in override.items():
        current = result.get(key)
        if value is None and key in result:
            continue
        if isinstance(current, dict) and isinstance(value, dict):
            result[key] = deep_merge(current, value)
        elif isinstance(current, list) and isinstance(value, list):
            result[key] = _concat(current, value)
        else:
            result[key] = _copy(value)
    return result


def _concat(first: list[Any], second: list[Any]) -> list[Any]:
    merged = list(first)
    seen = {item.source for item in first if isinstance(item, NamedTransform)}
    for item in second:
        if isinstance(item, NamedTransform):
            if item.source in seen:
                continue
            seen.add(item.source)
        merged.append(_copy(item))
    return merged


def _copy(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _copy(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_copy(v) for v in value]
    if isinstance(value, NamedTransform):
        return value
    return copy.copy(value)
