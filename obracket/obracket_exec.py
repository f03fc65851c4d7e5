"""
Runs a composed program in one of three modes.

- session:   submit to a named interactive session, capture its transcript
- file:      write the program to an explicit path, nothing is captured
- ephemeral: write a transient file, run the command on it, capture stdout
"""
from __future__ import annotations

import os
import shlex
import subprocess
import tempfile
from enum import Enum
from pathlib import Path
from typing import List, Optional, Protocol

from obracket.obracket_compose import strip_directive
from obracket.obracket_datatypes import ExecutionError
from obracket.obracket_debug import dbg
from obracket.obracket_params import BlockParams
from obracket.obracket_session import SessionRegistry


class Mode(Enum):
    SESSION = "session"
    FILE = "file"
    EPHEMERAL = "ephemeral"


def select_mode(params: BlockParams) -> Mode:
    if params.uses_session:
        return Mode.SESSION
    if params.file:
        return Mode.FILE
    return Mode.EPHEMERAL


class CommandRunner(Protocol):
    def run(self, argv: List[str]) -> str: ...


class SubprocessRunner:
    """Runs a command to completion and returns its standard output."""

    def run(self, argv: List[str]) -> str:
        dbg("run", argv)
        try:
            proc = subprocess.run(argv, capture_output=True, text=True, check=False)
        except OSError as e:
            raise ExecutionError(f"Cannot run {shlex.join(argv)}: {e}") from e
        if proc.returncode != 0:
            stderr = proc.stderr or ""
            message = stderr.strip() or f"{shlex.join(argv)} exited with status {proc.returncode}"
            raise ExecutionError(message, returncode=proc.returncode, stderr=stderr)
        return proc.stdout


def write_program(path: str | Path, program_text: str) -> Path:
    p = Path(path)
    try:
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(program_text, encoding="utf-8")
    except OSError as e:
        raise ExecutionError(f"Cannot write {p}: {e}") from e
    return p


class Dispatcher:
    """Chooses the execution mode for a block and returns its raw output."""

    def __init__(self, registry: Optional[SessionRegistry] = None, runner: Optional[CommandRunner] = None):
        self.registry = registry if registry is not None else SessionRegistry()
        self.runner = runner if runner is not None else SubprocessRunner()

    def execute(self, program_text: str, params: BlockParams) -> Optional[str]:
        mode = select_mode(params)
        dbg("dispatch", mode.value)
        match mode:
            case Mode.SESSION:
                return self._execute_session(program_text, params)
            case Mode.FILE:
                write_program(params.file, program_text)
                return None
            case Mode.EPHEMERAL:
                return self._execute_ephemeral(program_text, params)

    def _execute_session(self, program_text: str, params: BlockParams) -> str:
        handle = self.registry.get_or_create(str(params.session), params)
        return handle.submit(strip_directive(program_text))

    def _execute_ephemeral(self, program_text: str, params: BlockParams) -> str:
        argv = shlex.split(params.cmd or "")
        if not argv:
            raise ExecutionError("No command configured to run the block")
        if params.eval_file:
            path = write_program(params.eval_file, program_text)
            return self.runner.run(argv + [str(path)])

        try:
            fd, tmp = tempfile.mkstemp(prefix="obracket-", suffix=params.file_ext or "")
        except OSError as e:
            raise ExecutionError(f"Cannot write {tempfile.gettempdir()}: {e}") from e
        try:
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(program_text)
            except OSError as e:
                raise ExecutionError(f"Cannot write {tmp}: {e}") from e
            return self.runner.run(argv + [tmp])
        finally:
            try:
                os.remove(tmp)
            except FileNotFoundError:
                pass


__all__ = ["Mode", "select_mode", "CommandRunner", "SubprocessRunner", "Dispatcher", "write_program"]
