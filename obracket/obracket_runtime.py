# obracket_runtime.py

import sys
import collections.abc
from dataclasses import dataclass, field
from typing import Any, List, Optional, Literal, Dict, Union, TextIO

from obracket.obracket_compose import compose_params
from obracket.obracket_datatypes import BabelError
from obracket.obracket_debug import debug_enabled, emit
from obracket.obracket_exec import Dispatcher, CommandRunner, Mode, select_mode
from obracket.obracket_params import BlockParams
from obracket.obracket_result import normalize
from obracket.obracket_session import SessionRegistry

ParamsLike = Union[BlockParams, collections.abc.Mapping, None]


def _as_params(params: ParamsLike) -> BlockParams:
    if isinstance(params, BlockParams):
        return params
    return BlockParams.from_mapping(params or {})


@dataclass
class ExecutionResult:
    """The structured result of one block evaluation."""
    status: Literal['success', 'error']
    value: Any = None
    error_message: Optional[str] = None
    error: Optional[BaseException] = None
    program: Optional[str] = None
    mode: Optional[Mode] = None
    side_effects: List[Dict] = field(default_factory=list)

    @property
    def warnings(self) -> List[str]:
        return [e.get('message', '') for e in self.side_effects if 'warning' in (e.get('topics') or [])]

    def format_error(self) -> str:
        if self.status != 'error':
            return ""
        name = type(self.error).__name__ if self.error is not None else "Error"
        return f"{name}: {self.error_message or 'Unknown error'}"


class BlockRunner:
    """Composes, executes and normalizes code blocks for a host document.

    One runner owns one session registry, so create it once when the host
    starts and keep it for the host's lifetime.
    """

    def __init__(self, registry: Optional[SessionRegistry] = None,
                 runner: Optional[CommandRunner] = None,
                 debug_stream: Optional[TextIO] = None):
        self.registry = registry if registry is not None else SessionRegistry()
        self.dispatcher = Dispatcher(self.registry, runner)
        self.debug_stream = debug_stream

    def expand_body(self, body: str, params: ParamsLike = None,
                    side_effects: Optional[List[Dict]] = None) -> str:
        """Return the full program text for `body` without running it."""
        return compose_params(body, _as_params(params), side_effects)

    def _dump_program(self, program: str, side_effects: List[Dict]):
        stream = self.debug_stream or sys.stderr
        emit(side_effects, ['debug'], program)
        print(program, file=stream)

    def handle_block(self, body: str, params: ParamsLike = None) -> ExecutionResult:
        """The main entry point to evaluate a block."""
        side_effects: List[Dict] = []
        program = None
        mode = None
        try:
            p = _as_params(params)
            # 1. Compose
            program = compose_params(body, p, side_effects)
            if p.debug or debug_enabled():
                self._dump_program(program, side_effects)

            # 2. Execute
            mode = select_mode(p)
            raw = self.dispatcher.execute(program, p)

            # 3. Normalize
            value = None
            if mode is not Mode.FILE:
                value = normalize(raw, p, nil_to=p.nil_to)
            return ExecutionResult(
                status='success',
                value=value,
                program=program,
                mode=mode,
                side_effects=side_effects,
            )
        except BabelError as e:
            emit(side_effects, ['stderr'], str(e))
            return ExecutionResult(
                status='error',
                error_message=str(e),
                error=e,
                program=program,
                mode=mode,
                side_effects=side_effects,
            )


__all__ = ["BlockRunner", "ExecutionResult"]
