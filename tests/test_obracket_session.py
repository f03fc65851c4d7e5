import sys
import threading
import time

import pytest

from obracket.obracket_session import RacketSession, SessionRegistry, spawn_session
from obracket.obracket_datatypes import ExecutionError
from obracket.obracket_params import BlockParams

# A stand-in for `racket -i`: banner, "> " prompts, echoes expressions as results.
# `(display "...")` writes without a newline, so the next prompt shares its line.
FAKE_REPL = r'''
import sys
sys.stdout.write("Welcome to FakeRacket v0.1.\n> ")
sys.stdout.flush()
while True:
    line = sys.stdin.readline()
    if not line:
        break
    line = line.rstrip("\n")
    if line.startswith('(displayln "') and line.endswith('")'):
        sys.stdout.write(line[len('(displayln "'):-2] + "\n")
    elif line.startswith('(display "') and line.endswith('")'):
        sys.stdout.write(line[len('(display "'):-2])
    elif line.startswith("(exit"):
        break
    elif line.strip() and not line.startswith("(define"):
        sys.stdout.write("result: " + line + "\n")
    sys.stdout.write("> ")
    sys.stdout.flush()
'''


@pytest.fixture
def repl_argv(tmp_path):
    script = tmp_path / "fake_repl.py"
    script.write_text(FAKE_REPL, encoding="utf-8")
    return [sys.executable, "-u", str(script)]


class FakeHandle:
    def __init__(self, session_id):
        self.session_id = session_id
        self.closed = False
    def submit(self, text):
        return text
    def close(self):
        self.closed = True


def test_same_id_returns_same_handle():
    reg = SessionRegistry(factory=lambda sid, params: FakeHandle(sid))
    a = reg.get_or_create("main")
    b = reg.get_or_create("main")
    assert a is b
    assert len(reg) == 1
    assert "main" in reg


def test_different_ids_return_distinct_handles():
    reg = SessionRegistry(factory=lambda sid, params: FakeHandle(sid))
    a = reg.get_or_create("one")
    b = reg.get_or_create("two")
    assert a is not b
    assert (a.session_id, b.session_id) == ("one", "two")
    assert reg.get("one") is a
    assert reg.get("three") is None


def test_concurrent_creation_spawns_once():
    calls = []

    def slow_factory(sid, params):
        calls.append(sid)
        time.sleep(0.05)
        return FakeHandle(sid)

    reg = SessionRegistry(factory=slow_factory)
    results = []

    def worker():
        results.append(reg.get_or_create("shared"))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert calls == ["shared"]
    assert all(r is results[0] for r in results)


def test_close_all():
    reg = SessionRegistry(factory=lambda sid, params: FakeHandle(sid))
    a = reg.get_or_create("a")
    b = reg.get_or_create("b")
    assert reg.close_all() == 2
    assert a.closed and b.closed
    assert len(reg) == 0


def test_session_transcript_excludes_prompts_and_banner(repl_argv):
    session = RacketSession(repl_argv)
    try:
        assert session.alive
        out = session.submit("(define x 1)\n(+ x 2)\n")
        assert out == "result: (+ x 2)"
        # The next entry only sees its own output
        out = session.submit("(list 1 2)")
        assert out == "result: (list 1 2)"
    finally:
        session.close()
    assert not session.alive


def test_session_exit_is_an_execution_error(repl_argv):
    session = RacketSession(repl_argv)
    try:
        with pytest.raises(ExecutionError):
            session.submit("(exit)")
    finally:
        session.close()


def test_session_launch_failure():
    with pytest.raises(ExecutionError):
        RacketSession(["/nonexistent/racket-binary", "-i"])


def test_spawn_session_uses_session_cmd(repl_argv):
    import shlex
    params = BlockParams.from_mapping({"session-cmd": shlex.join(repl_argv)})
    session = spawn_session("s", params)
    try:
        assert session.argv == repl_argv
        assert session.submit("42") == "result: 42"
    finally:
        session.close()


def test_output_without_trailing_newline(repl_argv):
    session = RacketSession(repl_argv)
    try:
        assert session.submit('(display "x")') == "x"
        assert session.submit('(displayln "a")\n(display "b")') == "a\nb"
        # The session stays in step afterwards
        assert session.submit("(+ 1 2)") == "result: (+ 1 2)"
    finally:
        session.close()
