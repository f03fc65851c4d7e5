import os
import sys


def debug_enabled() -> bool:
    return bool(os.environ.get("OBRACKET_DEBUG"))


def dbg(*parts):
    if debug_enabled():
        try:
            print("[DBG]", *parts, file=sys.stderr)
        except Exception:
            pass


def emit(side_effects, topics, message):
    """Record a diagnostic the way a run's side effects are collected."""
    effect = {'topics': list(topics), 'message': message}
    if side_effects is not None:
        side_effects.append(effect)
    dbg(*topics, message)
    return effect
