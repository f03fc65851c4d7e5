"""
Defines the core data types for the obracket block pipeline.

This module provides the template segment variants used by the format
expander, the structured table result produced by the result normalizer,
and the error taxonomy shared by every stage of the pipeline.
"""

from abc import ABC
from typing import List, Any, Optional, Mapping


# =================================================================
# Errors
# =================================================================

class BabelError(Exception):
    """Base class for failures that abort a single block evaluation."""
    pass


class TemplateResolutionError(BabelError):
    """A template placeholder names a parameter that is not set."""
    def __init__(self, key: str, params: Any = None):
        self.key = key
        self.params = params
        shown = _describe_params(params)
        super().__init__(f"Cannot resolve template placeholder {key!r} in parameters {shown}")


class MalformedTemplateError(BabelError):
    """A template segment is neither literal text, a control marker nor a placeholder."""
    def __init__(self, segment: Any):
        self.segment = segment
        super().__init__(f"Malformed template segment: {segment!r}")


class ExecutionError(BabelError):
    """The interpreter could not be started or exited with a failure status."""
    def __init__(self, message: str, returncode: Optional[int] = None, stderr: Optional[str] = None):
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class ParamsError(BabelError):
    """A parameter set contains an unknown option (strict mode) or an invalid value."""
    pass


def _describe_params(params: Any) -> str:
    if params is None:
        return "{}"
    as_dict = getattr(params, "as_dict", None)
    if callable(as_dict):
        return repr(as_dict())
    if isinstance(params, Mapping):
        return repr(dict(params))
    return repr(params)


# =================================================================
# Template Segments
# =================================================================

class Segment(ABC):
    """Abstract base class for all structured template segments."""
    pass


class Text(Segment):
    """A literal run of text, emitted verbatim."""
    def __init__(self, text: str):
        self.text = text

    def __repr__(self) -> str:
        return f"Text<{self.text!r}>"

    def __eq__(self, other):
        return isinstance(other, Text) and self.text == other.text

    def __hash__(self):
        return hash(self.text)


class Placeholder(Segment):
    """A named reference into the parameter set, e.g. `{param: lib}`."""
    def __init__(self, name: str):
        self.name = name

    def __repr__(self) -> str:
        return f"Placeholder<{self.name!r}>"

    def __eq__(self, other):
        return isinstance(other, Placeholder) and self.name == other.name

    def __hash__(self):
        return hash(("placeholder", self.name))


class _ControlSegment(Segment):
    """Internal helper class for the stateless control segments."""
    def __init__(self, name, text):
        self._name = name
        self.text = text
    def __repr__(self):
        return f"{self._name.capitalize()}<>"

# Singleton instances for the control segments
Newline = _ControlSegment("newline", "\n")
Quote = _ControlSegment("quote", "'")


# =================================================================
# Results
# =================================================================

class Table:
    """A tabular block result: ordered rows of ordered cells plus naming hints.

    Rows are plain Python lists so that the host can rebuild its own table
    representation; `colnames` and `rownames` are passed through untouched
    from the block parameters.
    """
    def __init__(self, rows: List[Any], colnames: Any = None, rownames: Any = None):
        self.rows = rows
        self.colnames = colnames
        self.rownames = rownames

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self):
        return iter(self.rows)

    def __getitem__(self, index):
        return self.rows[index]

    def __repr__(self) -> str:
        hints = ""
        if self.colnames is not None:
            hints += f", colnames={self.colnames!r}"
        if self.rownames is not None:
            hints += f", rownames={self.rownames!r}"
        return f"Table({self.rows!r}{hints})"

    def __eq__(self, other):
        if isinstance(other, Table):
            return (self.rows == other.rows and
                    self.colnames == other.colnames and
                    self.rownames == other.rownames)
        # Allow comparing directly against nested lists
        if isinstance(other, list):
            return self.rows == other
        return NotImplemented
