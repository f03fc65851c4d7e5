"""
Turns the raw text printed by a block into a table or a plain string.

Output that reads as a Racket list, e.g. `'((1 2) (nil 4))`, becomes a
`Table`; anything else is passed back untouched.
"""
from __future__ import annotations

import re
from pathlib import Path
from typing import Any, List, Optional

from koine import Parser

from obracket.obracket_datatypes import Table
from obracket.obracket_debug import dbg

EMPTY_LITERAL = "nil"

_ESCAPE_RE = re.compile(r'\\(.)')
_ESCAPES = {"n": "\n", "t": "\t", "r": "\r"}


class Symbol(str):
    """A bare symbol cell, distinct from a string cell with the same text."""
    pass


class SexpTransformer:
    """Transforms the koine parse tree of a list literal into Python lists.

    Racket lists only ever come from `list` nodes. Plain Python lists in the
    tree are grouping left behind by the grammar and are spliced into their
    parent.
    """

    def transform(self, node: Any) -> List[Any]:
        """Return the values found under `node`, spliced into one flat list."""
        if isinstance(node, list):
            out: List[Any] = []
            for n in node:
                out.extend(self.transform(n))
            return out
        if not isinstance(node, dict):
            return [node]
        if 'tag' not in node:
            # Named-children dicts
            return self.transform([v for v in node.values() if isinstance(v, (dict, list))])

        match node.get('tag'):
            case 'list':
                return [self.transform(node.get('children', []))]
            case 'string':
                return [self._unquote(node['text'])]
            case 'number':
                # Exact ints for integer text, floats otherwise
                txt = node['text']
                if any(c in txt for c in '.eE'):
                    return [float(txt)]
                return [int(txt)]
            case 'boolean':
                return [node['text'] in ('#t', '#true')]
            case 'symbol':
                return [Symbol(node['text'])]
            case 'quote' | 'ws':
                return []
            case _:
                # Promoted wrappers (table, item): keep their content
                return self.transform(node.get('children', []))

    def _unquote(self, text: str) -> str:
        body = text[1:-1]
        return _ESCAPE_RE.sub(lambda m: _ESCAPES.get(m.group(1), m.group(1)), body)


class TableReader:
    """Reads Racket list literals with the koine grammar in grammar/."""

    _parser: Optional[Parser] = None
    _transformer: Optional[SexpTransformer] = None

    def __init__(self):
        if TableReader._parser is None:
            grammar_path = Path(__file__).parent / "grammar" / "sexp_table.yaml"
            TableReader._parser = Parser.from_file(str(grammar_path))
        if TableReader._transformer is None:
            TableReader._transformer = SexpTransformer()
        self.parser = TableReader._parser
        self.transformer = TableReader._transformer

    def read(self, text: str) -> Optional[List[Any]]:
        """Return the nested lists for `text`, or None if it is not a list literal."""
        stripped = (text or "").strip()
        if not (stripped.startswith("(") or stripped.startswith("'(")):
            return None
        parse_out = self.parser.parse(stripped)
        if isinstance(parse_out, dict) and 'status' in parse_out:
            if parse_out.get('status') != 'success':
                dbg("table parse failed", parse_out.get('error_message') or parse_out.get('message'))
                return None
            ast_node = parse_out.get('ast')
        else:
            ast_node = parse_out
        values = self.transformer.transform(ast_node)
        if len(values) != 1 or not isinstance(values[0], list):
            return None
        return values[0]


def read_table(text: str) -> Optional[List[Any]]:
    # Grammar load errors propagate
    reader = TableReader()
    try:
        return reader.read(text)
    except Exception as e:
        # Malformed output is an ordinary scalar result
        dbg("table read error", type(e).__name__, e)
        return None


def _replace_empty(value: Any, empty_literal: str, nil_to: Any) -> Any:
    if isinstance(value, list):
        return [_replace_empty(v, empty_literal, nil_to) for v in value]
    if isinstance(value, Symbol) and value == empty_literal:
        return nil_to
    return value


def normalize(raw_text: Optional[str],
              hints: Any = None,
              *,
              empty_literal: str = EMPTY_LITERAL,
              nil_to: Any = "") -> Any:
    """Classify block output as a `Table` or return it as a plain string.

    `hints` supplies `colnames`/`rownames` (a BlockParams or a mapping);
    every `nil` cell becomes `nil_to`. Never raises on odd output; only a
    grammar that fails to load is an error.
    """
    if raw_text is None:
        return None
    rows = read_table(raw_text)
    if rows is None:
        return raw_text
    colnames = rownames = None
    if hints is not None:
        getter = getattr(hints, "get", None)
        if callable(getter):
            colnames = getter("colnames")
            rownames = getter("rownames")
    return Table(_replace_empty(rows, empty_literal, nil_to), colnames=colnames, rownames=rownames)


__all__ = ["normalize", "read_table", "TableReader", "SexpTransformer", "Symbol", "EMPTY_LITERAL"]
