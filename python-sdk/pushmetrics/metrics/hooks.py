"""Process-level fatal error hooks.

Python has no ``uncaughtException`` event, so the first registration wraps
``sys.excepthook``. When an exception reaches the top of the main thread,
every registered callback runs once and is forgotten, then the previous
excepthook runs as usual.

Only the main thread is covered. An uncaught exception in a worker thread
goes to ``threading.excepthook``, does not end the process and does not
trigger cleanup.
"""

import itertools
import sys
import threading
from types import TracebackType
from typing import Callable, Dict, Optional, Type

FatalHook = Callable[[Type[BaseException], BaseException, Optional[TracebackType]], None]

_lock = threading.Lock()
_hooks: Dict[int, FatalHook] = {}
_ids = itertools.count(1)
_previous_excepthook = None


def register_fatal_hook(hook: FatalHook) -> Callable[[], None]:
    """Register a one-shot hook and return a function that unregisters it."""
    global _previous_excepthook

    with _lock:
        hook_id = next(_ids)
        _hooks[hook_id] = hook
        if sys.excepthook is not _fatal_excepthook:
            _previous_excepthook = sys.excepthook
            sys.excepthook = _fatal_excepthook

    def unregister() -> None:
        with _lock:
            _hooks.pop(hook_id, None)

    return unregister


def pending_hooks() -> int:
    with _lock:
        return len(_hooks)


def _fatal_excepthook(exc_type, exc, tb):
    with _lock:
        hooks = list(_hooks.values())
        _hooks.clear()
        previous = _previous_excepthook or sys.__excepthook__

    for hook in hooks:
        hook(exc_type, exc, tb)

    previous(exc_type, exc, tb)
