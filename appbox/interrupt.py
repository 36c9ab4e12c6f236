"""
appbox interrupts: cooperative cancellation tied to process signals.

Scope
- Context: a cancellation token. Cancelling a context cancels every context
  derived from it; application code polls `cancelled`, calls `check()` or
  blocks in `wait()`.
- background(): a fresh root context that is never cancelled on its own.
- handle(context): a context manager yielding a child of context that is
  cancelled on SIGINT or SIGTERM.

Notes
- Signal handlers can only be installed from the main thread; elsewhere
  handle() still yields a child context but installs nothing.
- After the first signal the previous handlers are restored, so a second
  Ctrl+C falls through to Python's default (KeyboardInterrupt).
"""
import contextlib
import signal
import threading
import weakref

from .utils import Unset


class Cancelled(Exception):
    """The context was cancelled without a more specific cause."""

    def __init__(self, message="context cancelled", /):
        super().__init__(message)


class Interrupted(Cancelled):
    """The context was cancelled by a process signal."""

    def __init__(self, signum, /):
        self.signum = signum
        super().__init__(f"interrupted by {signal.Signals(signum).name}")


class Context:
    """
    Cancellation token with parent/child propagation.

    Behavior
    - cancel(cause) marks the context and its descendants as cancelled; only
      the first cause is kept.
    - A context derived from an already-cancelled parent starts cancelled.
    """

    def __init__(self, parent=Unset, /):
        if not isinstance(parent, Context | Unset):
            raise TypeError("Context() parent must be a context")
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._cause = None
        self._children = weakref.WeakSet()
        self._parent = parent
        if parent:
            with parent._lock:
                parent._children.add(self)
            if parent.cancelled:
                self.cancel(parent.cause)

    def __bool__(self):
        return True

    @property
    def parent(self):
        return self._parent or None

    @property
    def cancelled(self):
        return self._event.is_set()

    @property
    def cause(self):
        """The exception describing why the context was cancelled, or None."""
        return self._cause

    def cancel(self, cause=Unset, /):
        with self._lock:
            if self._event.is_set():
                return
            self._cause = Cancelled() if cause is Unset or cause is None else cause
            self._event.set()
            children = list(self._children)
        for child in children:
            child.cancel(self._cause)

    def wait(self, timeout=None, /):
        """Block until cancelled or timeout elapses; True if cancelled."""
        return self._event.wait(timeout)

    def check(self):
        """Raise the cancellation cause if the context is cancelled."""
        if self._event.is_set():
            raise self._cause

    def child(self):
        return Context(self)


def background():
    """Return a new root context."""
    return Context()


@contextlib.contextmanager
def handle(context, /):
    """
    Yield a child of context cancelled on SIGINT or SIGTERM.

    The previous signal handlers are reinstated on the first signal and when
    the block exits.
    """
    if not isinstance(context, Context):
        raise TypeError("handle() argument must be a context")
    child = Context(context)
    if threading.current_thread() is not threading.main_thread():
        yield child
        return

    signums = [signal.SIGINT]
    if hasattr(signal, "SIGTERM"):
        signums.append(signal.SIGTERM)
    previous = {signum: signal.getsignal(signum) for signum in signums}

    def restore():
        for signum, handler in previous.items():
            if handler is not None:
                signal.signal(signum, handler)

    def handler(signum, frame):
        restore()
        child.cancel(Interrupted(signum))

    for signum in signums:
        signal.signal(signum, handler)
    try:
        yield child
    finally:
        restore()


__all__ = (
    "Cancelled",
    "Interrupted",
    "Context",
    "background",
    "handle",
)
