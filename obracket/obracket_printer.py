"""
A printer for Racket literals and the variable declaration block.
"""
import collections.abc
import math
import re
from typing import Any, Iterable, Tuple

from obracket.obracket_datatypes import ParamsError

_IDENTIFIER_RE = re.compile(r"^[^\s()\[\]{}\",'`;|\\#][^\s()\[\]{}\",'`;|\\]*$")
_NUMBER_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)$")

# Languages whose top level accepts `define-values`.
BINDING_LANGS = frozenset({
    "racket",
    "racket/base",
    "typed/racket",
    "typed/racket/base",
    "lazy",
    "scheme",
    "scheme/base",
})


def supports_binding(lang: str) -> bool:
    return lang in BINDING_LANGS


def is_identifier(name: Any) -> bool:
    text = str(name)
    return bool(_IDENTIFIER_RE.match(text)) and not _NUMBER_RE.match(text)


class Printer:
    """Formats Python values as readable Racket literals."""

    def __init__(self):
        self._handlers = self._create_handlers()

    def pformat(self, obj, level=0):
        """Public entry point to format an object.

        `level` 0 means the value stands alone in code and lists need a
        leading quote; nested values are already inside a quoted datum.
        """
        handler = self._get_handler(obj)
        return handler(obj, level)

    def _get_handler(self, obj):
        obj_type = type(obj)
        if obj_type in self._handlers:
            return self._handlers[obj_type]
        if isinstance(obj, bool): return self._pformat_bool
        if isinstance(obj, float): return self._pformat_float
        if isinstance(obj, int): return self._pformat_primitive
        if isinstance(obj, str): return self._pformat_str
        if isinstance(obj, collections.abc.Mapping): return self._pformat_mapping
        if isinstance(obj, collections.abc.Sequence): return self._pformat_list
        # Unknown types print as their text, quoted like any other string
        return lambda o, l: self._pformat_str(str(o), l)

    def _create_handlers(self):
        return {
            str: self._pformat_str,
            int: self._pformat_primitive,
            float: self._pformat_float,
            bool: self._pformat_bool,
            type(None): self._pformat_none,
            list: self._pformat_list,
            tuple: self._pformat_list,
            dict: self._pformat_mapping,
        }

    def _pformat_primitive(self, obj, level):
        return str(obj)

    def _pformat_float(self, obj, level):
        if math.isnan(obj):
            return "+nan.0"
        if math.isinf(obj):
            return "+inf.0" if obj > 0 else "-inf.0"
        return str(obj)

    def _pformat_str(self, obj, level):
        escaped = obj.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'

    def _pformat_bool(self, obj, level):
        return '#t' if obj else '#f'

    def _pformat_none(self, obj, level):
        return "'()" if level == 0 else "()"

    def _pformat_list(self, obj, level):
        inner = " ".join(self.pformat(item, level + 1) for item in obj)
        prefix = "'" if level == 0 else ""
        return f"{prefix}({inner})"

    def _pformat_mapping(self, obj, level):
        # Association list: '((k . v) ...)
        pairs = " ".join(
            f"({self.pformat(k, level + 1)} . {self.pformat(v, level + 1)})"
            for k, v in obj.items()
        )
        prefix = "'" if level == 0 else ""
        return f"{prefix}({pairs})"


def bind(vars: Iterable[Tuple[str, Any]], printer: Printer = None) -> str:
    """Declare every variable with one parallel `define-values` form.

    bind([("x", 1), ("ys", [1, 2])]) ->
        (define-values (x ys) (values 1 '(1 2)))
    """
    pairs = list(vars or [])
    if not pairs:
        return ""
    p = printer or Printer()
    for name, _ in pairs:
        if not is_identifier(name):
            raise ParamsError(f"Invalid variable name for binding: {name!r}")
    names = " ".join(str(name) for name, _ in pairs)
    values = " ".join(p.pformat(value) for _, value in pairs)
    return f"(define-values ({names}) (values {values}))"


__all__ = ["Printer", "bind", "supports_binding", "is_identifier", "BINDING_LANGS"]
