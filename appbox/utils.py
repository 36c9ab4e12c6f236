"""
appbox utilities (internal helpers, carefully exposed)

Scope
- Small building blocks shared by the container, fault and command layers.

Overview
- UnsetType / Unset
  • Singleton sentinel for “value not provided”, distinct from None and "".
  • Falsey, printable as "Unset", non-subclassable.

- coalesce(value, default=None)
  • Replace Unset with a concrete default; legitimate falsey values are kept.

- @rename("name")
  • Give generated wrappers a readable __name__/__qualname__.

- mirror("attr")
  • Read-only property exposing a private backing field (self._attr) as a
    fresh immutable copy.

- Lazy(function)
  • Compute-once cell: the first get() runs the function under a lock and keeps
    its value or its exception for every later call.

- rpad(text, width) / trim_right(text)
  • Padding and trimming used by the help and usage renderers.
"""
import threading
from collections.abc import Mapping, Sequence, Set
from typing import final


@final
class UnsetType:
    """
    Type of the Unset sentinel: a falsey singleton meaning "not provided".

    UnsetType() returns the one instance; the type cannot be subclassed. It
    takes part in type unions, so `str | Unset` is usable with isinstance().
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init_subclass__(cls, **options):
        raise TypeError("UnsetType cannot be subclassed")

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __or__(self, other, /):
        return UnsetType | other

    def __ror__(self, other, /):
        return other | UnsetType


def coalesce(value, default=None, /):
    """Return default when value is Unset, otherwise value (even if falsey)."""
    return default if value is Unset else value


def rename(name, /):
    """Decorator giving a generated callable a readable __name__ and __qualname__."""
    if not isinstance(name, str):
        raise TypeError("rename() argument must be a string")

    def decorate(function):
        if not callable(function):
            raise TypeError("rename() must decorate a callable")
        function.__name__ = function.__qualname__ = name
        return function

    return decorate


def _frozen(value):
    match value:
        case str() | bytes():
            return value
        case Mapping():
            return {key: _frozen(item) for key, item in value.items()}
        case Set():
            return frozenset(_frozen(item) for item in value)
        case Sequence():
            return tuple(_frozen(item) for item in value)
    return value


def mirror(name, /):
    """
    Read-only property returning a copy of the private attribute "_<name>".

    Nested sequences come back as tuples, sets as frozensets and mappings as
    new dicts, so callers never reach the backing state.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")
    private = "_" + name

    @rename(name)
    def read(self):
        return _frozen(getattr(self, private))

    return property(read)


@final
class Lazy:
    """
    Compute-once cell with a cached outcome.

    The first get() runs the function while holding a lock; concurrent callers
    block until it finishes and then observe the same result. An exception
    raised by the function is cached too and re-raised on every get(), so the
    function never runs twice for the lifetime of the cell.
    """

    __slots__ = ("_function", "_lock", "_done", "_value", "_error")

    def __init__(self, function, /):
        if not callable(function):
            raise TypeError("Lazy() argument must be callable")
        self._function = function
        self._lock = threading.Lock()
        self._done = False
        self._value = None
        self._error = None

    def get(self):
        if not self._done:
            with self._lock:
                if not self._done:
                    try:
                        self._value = self._function()
                    except Exception as error:
                        self._error = error
                    self._done = True
        if self._error is not None:
            raise self._error
        return self._value

    @property
    def done(self):
        return self._done


def rpad(text, width, /):
    """Pad text with spaces on the right up to width (never truncates)."""
    return text.ljust(width)


def trim_right(text, /):
    """Strip trailing whitespace (spaces, tabs, newlines)."""
    return text.rstrip()


Unset = UnsetType()
"""
Sentinel for “not provided”.

Use Unset as a default when None is a meaningful value; materialize it with
coalesce(value, default).
"""


__all__ = (
    # Functions
    "coalesce",
    "rename",
    "mirror",
    "rpad",
    "trim_right",

    # Types
    "UnsetType",
    "Lazy",

    # Constants
    "Unset",
)
