"""
Per-thread audit context.

Request middleware binds the network origin (IP, user agent, request id);
services bind the acting administrator. Audit records read the innermost
context when they are written.
"""
import threading
from contextlib import contextmanager

_local = threading.local()


def _stack():
    if not hasattr(_local, 'stack'):
        _local.stack = []
    return _local.stack


@contextmanager
def audit_context(**values):
    """
    Bind audit metadata for the duration of the block.

    Nested blocks inherit the outer values; keys passed as None keep the
    inherited value.

        with audit_context(actor=request.user):
            panchayath.save()
    """
    stack = _stack()
    merged = dict(stack[-1]) if stack else {}
    merged.update({key: value for key, value in values.items() if value is not None})
    stack.append(merged)
    try:
        yield merged
    finally:
        stack.pop()


def current_context():
    """Return the innermost bound context (empty dict outside any block)."""
    stack = _stack()
    return stack[-1] if stack else {}
