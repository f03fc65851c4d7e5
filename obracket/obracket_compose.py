"""
Builds the full program text for a code block.

    #lang <tag>
    <prologue>
    (define-values (...) (values ...))
    <body>
    <epilogue>
"""
from __future__ import annotations

from typing import Any, Iterable, List, Optional, Tuple

from obracket.obracket_debug import emit
from obracket.obracket_params import BlockParams, PRIMARY_LANG
from obracket.obracket_printer import bind, supports_binding
from obracket.obracket_template import expand

DIRECTIVE_PREFIX = "#lang "


def directive(lang: Optional[str]) -> str:
    return f"{DIRECTIVE_PREFIX}{lang or PRIMARY_LANG}"


def compose(body: str,
            lang: Optional[str] = None,
            vars: Optional[Iterable[Tuple[str, Any]]] = None,
            prologue: Any = None,
            epilogue: Any = None,
            *,
            params: Any = None,
            side_effects: Optional[List[dict]] = None) -> str:
    """Assemble the program text; `params` resolves template placeholders.

    Variables requested for a language outside the binding family are
    dropped with a warning recorded in `side_effects`.
    """
    effective = lang or PRIMARY_LANG
    pairs = list(vars or [])
    declarations = ""
    if pairs:
        if supports_binding(effective):
            declarations = bind(pairs)
        else:
            names = ", ".join(str(name) for name, _ in pairs)
            emit(side_effects, ['stderr', 'warning'],
                 f"Variables ({names}) are not supported for #lang {effective}; ignoring them")

    parts = [
        directive(effective),
        expand(prologue, params),
        declarations,
        body if body is not None else "",
        expand(epilogue, params),
    ]
    # Directive and body are always kept, even when the body is empty
    return "\n".join(p for i, p in enumerate(parts) if p or i in (0, 3))


def compose_params(body: str, params: BlockParams, side_effects: Optional[List[dict]] = None) -> str:
    return compose(
        body,
        params.lang,
        params.vars,
        params.prologue,
        params.epilogue,
        params=params,
        side_effects=side_effects,
    )


def strip_directive(text: str) -> str:
    """Drop a leading `#lang` line; the interactive REPL cannot read it."""
    first, sep, rest = text.partition("\n")
    if first.startswith(DIRECTIVE_PREFIX):
        return rest
    return text


__all__ = ["compose", "compose_params", "directive", "strip_directive"]
