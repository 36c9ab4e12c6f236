"""
appbox process containers: environment, stdio and arguments behind interfaces.

Scope
- Facets: EnvContainer, StdinContainer, StdoutContainer, StderrContainer and
  ArgContainer are abstract capability classes; Container is their conjunction.
- Factories build immutable facets from plain values (env_container(),
  arg_container(), container(), ...) or snapshot the real process once
  (os_env_container(), os_container()).
- Derived helpers: environ(), environ_map(), args(), env_bool().
- Path sentinels and predicates: is_dev_stdin(), is_dev_stdout(),
  is_dev_stderr(), is_dev_null(), is_dev_path().
- Base directory hooks: config_dir_path(), cache_dir_path(), data_dir_path().

Core ideas
- Application code receives a Container and never reads os.environ, sys.argv
  or the sys streams directly, so every behaviour is testable with io.StringIO.
- Empty environment values are treated as absent everywhere.
- Containers never change after construction; "overriding" builds a new one.

Quick start
    from appbox.containers import container, environ

    box = container({"A": "1", "B": ""}, stdout=io.StringIO(), args=("prog", "x"))
    environ(box)   # ['A=1']
    box.arg(1)     # 'x'
"""
import io
import os
import sys
from abc import ABC, abstractmethod
from types import MappingProxyType

from .utils import Unset, coalesce


class EnvContainer(ABC):
    """
    Environment facet.

    - env(key) returns the raw value, or "" when the key is unset or empty.
    - each_env() yields (key, value) pairs; the value is never empty.
    """

    @abstractmethod
    def env(self, key, /): ...

    @abstractmethod
    def each_env(self): ...


class StdinContainer(ABC):
    """Standard-input facet; reads return "" when no reader was supplied."""

    @property
    @abstractmethod
    def stdin(self): ...


class StdoutContainer(ABC):
    """Standard-output facet; writes are discarded when no writer was supplied."""

    @property
    @abstractmethod
    def stdout(self): ...


class StderrContainer(ABC):
    """Standard-error facet; writes are discarded when no writer was supplied."""

    @property
    @abstractmethod
    def stderr(self): ...


class ArgContainer(ABC):
    """
    Argument facet.

    - num_args is the number of arguments.
    - arg(index) returns the argument at index; indexes outside
      [0, num_args) raise IndexError.
    """

    @property
    @abstractmethod
    def num_args(self): ...

    @abstractmethod
    def arg(self, index, /): ...


class StdioContainer(StdinContainer, StdoutContainer, StderrContainer, ABC):
    """Standard input, output and error."""


class Container(EnvContainer, StdioContainer, ArgContainer, ABC):
    """Environment, stdio and arguments."""


class _Discard(io.TextIOBase):
    """Writable text sink that drops everything."""

    def writable(self):
        return True

    def write(self, text, /):
        return len(text)


class _Env(EnvContainer):
    __slots__ = ("_values",)

    def __init__(self, values, /):
        self._values = MappingProxyType({key: value for key, value in values.items() if value})

    def env(self, key, /):
        return self._values.get(key, "")

    def each_env(self):
        yield from self._values.items()


class _Stdin(StdinContainer):
    __slots__ = ("_reader",)

    def __init__(self, reader, /):
        self._reader = reader if reader is not None else io.StringIO()

    @property
    def stdin(self):
        return self._reader


class _Stdout(StdoutContainer):
    __slots__ = ("_writer",)

    def __init__(self, writer, /):
        self._writer = writer if writer is not None else _Discard()

    @property
    def stdout(self):
        return self._writer


class _Stderr(StderrContainer):
    __slots__ = ("_writer",)

    def __init__(self, writer, /):
        self._writer = writer if writer is not None else _Discard()

    @property
    def stderr(self):
        return self._writer


class _Args(ArgContainer):
    __slots__ = ("_values",)

    def __init__(self, values, /):
        values = tuple(values)
        for value in values:
            if not isinstance(value, str):
                raise TypeError(f"argument must be a string, not {type(value).__name__!r}")
        self._values = values

    @property
    def num_args(self):
        return len(self._values)

    def arg(self, index, /):
        if not 0 <= index < len(self._values):
            raise IndexError(f"argument index {index} out of range [0, {len(self._values)})")
        return self._values[index]


class _Container(Container):
    """Delegating conjunction of the five facets."""

    __slots__ = ("_env", "_stdin", "_stdout", "_stderr", "_args")

    def __init__(self, env, stdin, stdout, stderr, args, /):
        self._env = env
        self._stdin = stdin
        self._stdout = stdout
        self._stderr = stderr
        self._args = args

    def env(self, key, /):
        return self._env.env(key)

    def each_env(self):
        return self._env.each_env()

    @property
    def stdin(self):
        return self._stdin.stdin

    @property
    def stdout(self):
        return self._stdout.stdout

    @property
    def stderr(self):
        return self._stderr.stderr

    @property
    def num_args(self):
        return self._args.num_args

    def arg(self, index, /):
        return self._args.arg(index)


def env_container(values=Unset, /):
    """
    Build an EnvContainer from a mapping.

    Empty values are dropped, so env() returns "" for them and each_env()
    never yields them.
    """
    return _Env(dict(coalesce(values, {})))


def environ_container(environ, /):
    """
    Build an EnvContainer from "KEY=VALUE" strings (the os.environ layout).

    Raises
    - ValueError: an entry has no "=" separator.
    """
    values = {}
    for entry in environ:
        key, separator, value = entry.partition("=")
        if not separator:
            raise ValueError(f"environment variable does not contain =: {entry!r}")
        values[key] = value
    return _Env(values)


def os_env_container():
    """Snapshot the operating system environment once."""
    return environ_container(f"{key}={value}" for key, value in os.environ.items())


def override_env_container(base, overrides, /):
    """
    Layer overrides over base and return a new EnvContainer.

    An empty override value removes the key.
    """
    values = environ_map(base)
    values.update(overrides)
    return _Env(values)


def stdin_container(reader=None, /):
    return _Stdin(reader)


def stdout_container(writer=None, /):
    return _Stdout(writer)


def stderr_container(writer=None, /):
    return _Stderr(writer)


def arg_container(*args):
    return _Args(args)


def container(env=Unset, /, stdin=None, stdout=None, stderr=None, args=()):
    """
    Build a Container from plain values.

    Parameters
    - env: Mapping[str, str] | Unset; empty values are dropped.
    - stdin: readable text stream or None (reads return "").
    - stdout, stderr: writable text streams or None (writes are discarded).
    - args: Iterable[str]; conventionally starts with the program name.
    """
    return _Container(env_container(env), _Stdin(stdin), _Stdout(stdout), _Stderr(stderr), _Args(args))


def os_container():
    """
    Snapshot the running process: environment, sys.argv and the sys streams.

    Raises
    - ValueError: the raw environment could not be parsed.
    """
    return _Container(os_env_container(), _Stdin(sys.stdin), _Stdout(sys.stdout), _Stderr(sys.stderr), _Args(sys.argv))


def args_container(base, /, *args):
    """Return a Container sharing env and stdio with base but with new arguments."""
    return _Container(base, base, base, base, _Args(args))


def environ(env, /):
    """Return every environment entry as "KEY=VALUE", sorted."""
    return sorted(f"{key}={value}" for key, value in env.each_env())


def environ_map(env, /):
    """Return the environment as a dict; no key has an empty value."""
    return {key: value for key, value in env.each_env() if value}


def args(arguments, /):
    """Return all arguments as a list."""
    return [arguments.arg(index) for index in range(arguments.num_args)]


_TRUE = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE = frozenset({"0", "f", "F", "FALSE", "false", "False"})


def env_bool(env, key, default, /):
    """
    Parse the environment variable key as a boolean.

    Returns default when the variable is unset or empty.

    Raises
    - ValueError: the value is not one of 1/t/T/TRUE/true/True or
      0/f/F/FALSE/false/False.
    """
    if not (value := env.env(key)):
        return default
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"invalid boolean value for {key}: {value!r}")


if os.name == "nt":
    DEV_STDIN_FILE_PATH = ""
    DEV_STDOUT_FILE_PATH = ""
    DEV_STDERR_FILE_PATH = ""
    DEV_NULL_FILE_PATH = "NUL"
else:
    DEV_STDIN_FILE_PATH = "/dev/stdin"
    DEV_STDOUT_FILE_PATH = "/dev/stdout"
    DEV_STDERR_FILE_PATH = "/dev/stderr"
    DEV_NULL_FILE_PATH = "/dev/null"


def is_dev_stdin(path, /):
    return path != "" and path == DEV_STDIN_FILE_PATH


def is_dev_stdout(path, /):
    return path != "" and path == DEV_STDOUT_FILE_PATH


def is_dev_stderr(path, /):
    return path != "" and path == DEV_STDERR_FILE_PATH


def is_dev_null(path, /):
    return path != "" and path == DEV_NULL_FILE_PATH


def is_dev_path(path, /):
    """True if path is any of the stdin, stdout, stderr or null sentinels."""
    return is_dev_stdin(path) or is_dev_stdout(path) or is_dev_stderr(path) or is_dev_null(path)


def _home_dir_path(env, /):
    if home := env.env("HOME") or env.env("USERPROFILE"):
        return home
    raise ValueError("$HOME is not defined")


def _base_dir_path(env, xdg, windows, fallback, /):
    if path := env.env(xdg):
        return path
    if os.name == "nt" and (path := env.env(windows)):
        return path
    return os.path.join(_home_dir_path(env), *fallback)


def config_dir_path(env, /):
    """Base configuration directory: $XDG_CONFIG_HOME, else ~/.config."""
    return _base_dir_path(env, "XDG_CONFIG_HOME", "APPDATA", (".config",))


def cache_dir_path(env, /):
    """Base cache directory: $XDG_CACHE_HOME, else ~/.cache."""
    return _base_dir_path(env, "XDG_CACHE_HOME", "LOCALAPPDATA", (".cache",))


def data_dir_path(env, /):
    """Base data directory: $XDG_DATA_HOME, else ~/.local/share."""
    return _base_dir_path(env, "XDG_DATA_HOME", "LOCALAPPDATA", (".local", "share"))


__all__ = (
    # Facets
    "EnvContainer",
    "StdinContainer",
    "StdoutContainer",
    "StderrContainer",
    "ArgContainer",
    "StdioContainer",
    "Container",

    # Factories
    "env_container",
    "environ_container",
    "os_env_container",
    "override_env_container",
    "stdin_container",
    "stdout_container",
    "stderr_container",
    "arg_container",
    "container",
    "os_container",
    "args_container",

    # Derived helpers
    "environ",
    "environ_map",
    "args",
    "env_bool",

    # Path sentinels
    "DEV_STDIN_FILE_PATH",
    "DEV_STDOUT_FILE_PATH",
    "DEV_STDERR_FILE_PATH",
    "DEV_NULL_FILE_PATH",
    "is_dev_stdin",
    "is_dev_stdout",
    "is_dev_stderr",
    "is_dev_null",
    "is_dev_path",

    # Base directories
    "config_dir_path",
    "cache_dir_path",
    "data_dir_path",
)
