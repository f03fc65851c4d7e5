"""
Typed parameter set for a single code block evaluation.

The host hands over header arguments as a loose mapping (org style keys such
as `:session` or `file-ext`). `BlockParams.from_mapping` folds them into
named fields with documented defaults; options it does not know about are
kept in `extras` so templates can still reference them.
"""
from __future__ import annotations

import dataclasses
import collections.abc
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from obracket.obracket_datatypes import ParamsError
from obracket.obracket_template import coerce_template

PRIMARY_LANG = "racket"
DEFAULT_CMD = "racket -u"
DEFAULT_SESSION_CMD = "racket -i"
DEFAULT_FILE_EXT = ".rkt"
NO_SESSION = "none"

_MISSING = object()


def _option_name(key: str) -> str:
    # ':file-ext' / 'file-ext' / 'file_ext' -> 'file_ext'
    return str(key).lstrip(":").strip().replace("-", "_")


def _parse_scalar(text: str) -> Any:
    # "1" -> 1, "(1 2)" stays text; YAML gives us numbers/bools for free
    try:
        value = yaml.safe_load(text)
    except yaml.YAMLError:
        return text
    if isinstance(value, (int, float, bool, list)) or value is None:
        return value
    return text


def _coerce_vars(value: Any) -> List[Tuple[str, Any]]:
    """Accept a mapping, a list of pairs or `name=value` strings."""
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    if isinstance(value, collections.abc.Mapping):
        return [(str(k), v) for k, v in value.items()]
    out: List[Tuple[str, Any]] = []
    for item in value:
        if isinstance(item, str):
            name, sep, raw = item.partition("=")
            if not sep or not name.strip():
                raise ParamsError(f"Invalid variable binding: {item!r}")
            out.append((name.strip(), _parse_scalar(raw.strip())))
        elif isinstance(item, collections.abc.Mapping) and len(item) == 1:
            (name, val), = item.items()
            out.append((str(name), val))
        elif isinstance(item, (list, tuple)) and len(item) == 2:
            out.append((str(item[0]), item[1]))
        else:
            raise ParamsError(f"Invalid variable binding: {item!r}")
    return out


def _extend_vars(current, extra):
    merged = dict(current)
    merged.update(extra)
    return list(merged.items())


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() not in ("", "no", "nil", "false", "0")
    return bool(value)


@dataclass
class BlockParams:
    """Header arguments of one code block.

    lang         language tag for the `#lang` line; `None` means `racket`
    vars         ordered (name, value) bindings
    prologue     template emitted before the variable declarations
    epilogue     template emitted after the body
    cmd          interpreter command; the program path is appended
    file_ext     extension of the transient program file
    file         explicit output path: write the program there, no capture
    eval_file    explicit path for the program file in ephemeral mode
    session      session id; `"none"` disables sessions
    session_cmd  command used to spawn an interactive session
    debug        dump the composed program to stderr before running
    colnames     column naming hint passed through to tabular results
    rownames     row naming hint passed through to tabular results
    nil_to       display value substituted for `nil` cells
    """
    lang: Optional[str] = None
    vars: List[Tuple[str, Any]] = field(default_factory=list)
    prologue: Any = None
    epilogue: Any = None
    cmd: str = DEFAULT_CMD
    file_ext: str = DEFAULT_FILE_EXT
    file: Optional[str] = None
    eval_file: Optional[str] = None
    session: Optional[str] = NO_SESSION
    session_cmd: str = DEFAULT_SESSION_CMD
    debug: bool = False
    colnames: Any = None
    rownames: Any = None
    nil_to: str = ""
    extras: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def field_names(cls) -> List[str]:
        return [f.name for f in dataclasses.fields(cls) if f.name != "extras"]

    @classmethod
    def from_mapping(cls, mapping: Optional[collections.abc.Mapping] = None, *, strict: bool = False) -> 'BlockParams':
        """Build a parameter set from a loose header-argument mapping.

        Unknown options land in `extras`, or raise `ParamsError` when
        `strict` is set.
        """
        known = set(cls.field_names())
        kwargs: Dict[str, Any] = {}
        extras: Dict[str, Any] = {}
        for key, value in (mapping or {}).items():
            name = _option_name(key)
            if name == "var":
                # org allows `:var` to repeat; fold every occurrence
                kwargs.setdefault("vars", []).extend(_coerce_vars(value))
                continue
            if name == "vars":
                kwargs.setdefault("vars", []).extend(_coerce_vars(value))
                continue
            if name in known:
                kwargs[name] = value
            elif strict:
                raise ParamsError(f"Unknown block option: {key!r}")
            else:
                extras[name] = value
        for name in ("prologue", "epilogue"):
            if name in kwargs:
                kwargs[name] = coerce_template(kwargs[name])
        if "debug" in kwargs:
            kwargs["debug"] = _coerce_bool(kwargs["debug"])
        if kwargs.get("file_ext") and not str(kwargs["file_ext"]).startswith("."):
            kwargs["file_ext"] = "." + str(kwargs["file_ext"])
        if "session" in kwargs and kwargs["session"] in (None, ""):
            kwargs["session"] = NO_SESSION
        return cls(extras=extras, **kwargs)

    def merge(self, overrides: Optional[collections.abc.Mapping] = None, *, strict: bool = False) -> 'BlockParams':
        """Return a new parameter set with `overrides` applied on top of this one.

        Variable bindings add to the existing ones; rebinding a name replaces
        its value in place.
        """
        if not overrides:
            return dataclasses.replace(self, vars=list(self.vars), extras=dict(self.extras))
        incoming = BlockParams.from_mapping(overrides, strict=strict)
        given = {_option_name(k) for k in overrides}
        changes: Dict[str, Any] = {}
        for name in self.field_names():
            if name == "vars":
                if given & {"vars", "var"}:
                    changes[name] = _extend_vars(self.vars, incoming.vars)
            elif name in given:
                changes[name] = getattr(incoming, name)
        extras = dict(self.extras)
        extras.update(incoming.extras)
        return dataclasses.replace(self, extras=extras, **changes)

    def get(self, name: str, default: Any = None) -> Any:
        """Option lookup by kebab or snake case name, with a caller default."""
        key = _option_name(name)
        if key in self.field_names():
            value = getattr(self, key)
            return default if value is None else value
        value = self.extras.get(key, _MISSING)
        if value is _MISSING:
            return default
        return value

    def __contains__(self, name: str) -> bool:
        return self.get(name, _MISSING) is not _MISSING

    def __getitem__(self, name: str) -> Any:
        value = self.get(name, _MISSING)
        if value is _MISSING:
            raise KeyError(name)
        return value

    @property
    def effective_lang(self) -> str:
        return self.lang or PRIMARY_LANG

    @property
    def uses_session(self) -> bool:
        return self.session is not None and str(self.session) not in ("", NO_SESSION)

    def as_dict(self) -> Dict[str, Any]:
        out = {name: getattr(self, name) for name in self.field_names()}
        out.update(self.extras)
        return out


def load_params(path: str | Path, *, strict: bool = False) -> BlockParams:
    """Read a YAML mapping of block options from `path`."""
    p = Path(path)
    with p.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        data = {}
    if not isinstance(data, collections.abc.Mapping):
        raise ParamsError(f"Parameter file {str(p)!r} must contain a mapping, got {type(data).__name__}")
    return BlockParams.from_mapping(data, strict=strict)


__all__ = [
    "BlockParams",
    "load_params",
    "PRIMARY_LANG",
    "DEFAULT_CMD",
    "DEFAULT_SESSION_CMD",
    "DEFAULT_FILE_EXT",
    "NO_SESSION",
]
