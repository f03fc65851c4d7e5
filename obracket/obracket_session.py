"""
Interactive Racket sessions and the registry that keeps them alive.

A session is a `racket -i` process driven over pipes. Each submission is
followed by an end-of-entry marker expression; output is read until the
marker comes back, so the returned transcript belongs to that submission
only.
"""
from __future__ import annotations

import re
import shlex
import subprocess
import threading
from typing import Any, Callable, Dict, List, Optional

from obracket.obracket_datatypes import ExecutionError
from obracket.obracket_debug import dbg
from obracket.obracket_params import DEFAULT_SESSION_CMD

EOE_INDICATOR = "org-babel-racket-eoe"
_PROMPT_RE = re.compile(r"^(?:> )+")
_TRAILING_PROMPT_RE = re.compile(r"(?:> )+$")


class RacketSession:
    """A live interactive interpreter, fed one block at a time."""

    def __init__(self, argv: List[str], prompt_re: re.Pattern = _PROMPT_RE):
        self.argv = list(argv)
        self.prompt_re = prompt_re
        try:
            self.process = subprocess.Popen(
                self.argv,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                bufsize=1,
            )
        except OSError as e:
            raise ExecutionError(f"Cannot start session {shlex.join(self.argv)}: {e}") from e
        # Swallow the banner and the first prompt
        self._read_entry()

    @property
    def alive(self) -> bool:
        return self.process.poll() is None

    def _write(self, text: str):
        try:
            self.process.stdin.write(text)
            self.process.stdin.flush()
        except (BrokenPipeError, OSError) as e:
            raise ExecutionError(f"Session {shlex.join(self.argv)} is not accepting input: {e}",
                                 returncode=self.process.poll()) from e

    def _read_entry(self) -> str:
        self._write(f'(displayln "{EOE_INDICATOR}")\n')
        lines = []
        while True:
            line = self.process.stdout.readline()
            if line == "":
                raise ExecutionError(
                    f"Session {shlex.join(self.argv)} exited before finishing the entry",
                    returncode=self.process.poll(),
                    stderr="\n".join(lines),
                )
            cleaned = self.prompt_re.sub("", line.rstrip("\r\n"))
            if cleaned.endswith(EOE_INDICATOR):
                # Output without a final newline shares the marker's line
                head = _TRAILING_PROMPT_RE.sub("", cleaned[:-len(EOE_INDICATOR)])
                if head:
                    lines.append(head)
                break
            lines.append(cleaned)
        return "\n".join(lines)

    def submit(self, text: str) -> str:
        """Send `text`, wait for the marker and return this entry's output."""
        dbg("session submit", self.argv, len(text))
        self._write(text.rstrip("\n") + "\n")
        return self._read_entry()

    def close(self):
        """Stop the interpreter; owned by the host's shutdown path."""
        if self.process.stdin and not self.process.stdin.closed:
            try:
                self.process.stdin.close()
            except (BrokenPipeError, OSError):
                # Interpreter already gone
                pass
        try:
            self.process.wait(timeout=5)
        except subprocess.TimeoutExpired:
            self.process.kill()
            self.process.wait()
        if self.process.stdout and not self.process.stdout.closed:
            self.process.stdout.close()

    def __repr__(self) -> str:
        state = "alive" if self.alive else "exited"
        return f"<RacketSession {shlex.join(self.argv)} {state}>"


def spawn_session(session_id: str, params: Any = None) -> RacketSession:
    cmd = DEFAULT_SESSION_CMD
    if params is not None:
        cmd = params.get("session_cmd", DEFAULT_SESSION_CMD)
    dbg("spawn session", session_id, cmd)
    return RacketSession(shlex.split(cmd))


class SessionRegistry:
    """Maps session ids to live handles.

    Construct one per host environment; handles are created on first use
    and reused for the same id afterwards. The pipeline never closes them.
    """

    def __init__(self, factory: Optional[Callable[[str, Any], Any]] = None):
        self._factory = factory or spawn_session
        self._sessions: Dict[str, Any] = {}
        self._lock = threading.Lock()
        self._id_locks: Dict[str, threading.Lock] = {}

    def _id_lock(self, session_id: str) -> threading.Lock:
        with self._lock:
            lock = self._id_locks.get(session_id)
            if lock is None:
                lock = self._id_locks[session_id] = threading.Lock()
            return lock

    def get_or_create(self, session_id: str, params: Any = None):
        with self._id_lock(session_id):
            handle = self._sessions.get(session_id)
            if handle is None:
                handle = self._factory(session_id, params)
                self._sessions[session_id] = handle
            return handle

    def get(self, session_id: str, default=None):
        return self._sessions.get(session_id, default)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def close_all(self) -> int:
        """Close every handle; intended for host shutdown."""
        with self._lock:
            handles = list(self._sessions.values())
            self._sessions.clear()
            self._id_locks.clear()
        for handle in handles:
            close = getattr(handle, "close", None)
            if callable(close):
                close()
        return len(handles)


__all__ = ["RacketSession", "SessionRegistry", "spawn_session", "EOE_INDICATOR"]
