"""
Format expander for prologue and epilogue templates.

A template is either a literal string, returned verbatim, or a sequence of
segments (see obracket_datatypes) concatenated in order.
"""
from __future__ import annotations

import collections.abc
from typing import Any, List

from obracket.obracket_datatypes import (
    Segment, Text, Placeholder, Newline, Quote,
    TemplateResolutionError, MalformedTemplateError,
)

_MISSING = object()

_CONTROL_NAMES = {
    "nl": Newline,
    "newline": Newline,
    "quote": Quote,
}


def _lookup(params: Any, name: str) -> Any:
    if params is None:
        return _MISSING
    getter = getattr(params, "get", None)
    if callable(getter):
        return getter(name, _MISSING)
    return _MISSING


def _expand_segment(segment: Any, params: Any) -> str:
    match segment:
        case str():
            return segment
        case Text():
            return segment.text
        case Placeholder(name=name):
            value = _lookup(params, name)
            if value is _MISSING:
                raise TemplateResolutionError(name, params)
            return str(value)
    if segment is Newline or segment is Quote:
        return segment.text
    raise MalformedTemplateError(segment)


def expand(template: Any, params: Any = None) -> str:
    """Render `template` against `params` (a BlockParams or any mapping)."""
    if template is None:
        return ""
    if isinstance(template, str):
        return template
    if isinstance(template, Segment):
        return _expand_segment(template, params)
    if not isinstance(template, collections.abc.Sequence):
        raise MalformedTemplateError(template)
    return "".join(_expand_segment(seg, params) for seg in template)


def coerce_template(obj: Any) -> Any:
    """Convert template data read from YAML/JSON into segments.

    - `"text"`                 -> Text
    - `{"param": "name"}`      -> Placeholder
    - `{"control": "nl"}`      -> Newline (also "newline")
    - `{"control": "quote"}`   -> Quote

    A bare string (not inside a list) stays a literal template.
    """
    if obj is None or isinstance(obj, (str, Segment)):
        return obj
    if not isinstance(obj, collections.abc.Sequence):
        raise MalformedTemplateError(obj)
    out: List[Segment] = []
    for item in obj:
        if isinstance(item, Segment):
            out.append(item)
        elif isinstance(item, str):
            out.append(Text(item))
        elif isinstance(item, collections.abc.Mapping) and len(item) == 1:
            (kind, value), = item.items()
            if kind == "param" and isinstance(value, str):
                out.append(Placeholder(value))
            elif kind == "control" and value in _CONTROL_NAMES:
                out.append(_CONTROL_NAMES[value])
            else:
                raise MalformedTemplateError(item)
        else:
            raise MalformedTemplateError(item)
    return out


__all__ = ["expand", "coerce_template"]
