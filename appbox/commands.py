"""
appbox command model: declarative descriptions of command trees.

What this module provides
- Command: an immutable description of one command. A command either runs
  an action (`run`) or groups sub-commands (`sub_commands`), never both.
  Descriptions are pure data; appbox.builder compiles them into executable
  appbox.tree nodes bound to a container.
- Positional-argument validators for Command(args=...):
  no_args, arbitrary_args, exact_args(n), minimum_n_args(n), maximum_n_args(n)
  and range_args(low, high). A validator is called as validator(path, args)
  with the command path and the positional arguments, and raises
  UsageError to reject them.
- Flag helpers: bind_multiple(*binders) and mark_flag_required(flag_set, name).

Quick start
    from appbox import Command, background, exact_args, launch

    def greet(context, container):
        container.stdout.write(f"hello {container.arg(0)}\\n")

    app = Command(
        "app",
        short="A friendly tool",
        sub_commands=[Command("greet <name>", short="Say hello", args=exact_args(1), run=greet)],
        version="1.0.0",
    )

    if __name__ == "__main__":
        launch(background(), app)
"""
import functools
import operator
import re

from .faults import InvalidCommandError, UsageError
from .utils import Unset, coalesce, mirror, rename


class CommandType(type):
    """
    Metaclass exposing the fields listed in __introspectable__ as read-only
    properties (see utils.mirror) and giving every instance a stable repr.
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            return f"{type(self).__typename__}({', '.join(map(functools.partial(operator.mod, '%s=%r'), self.__rich_repr__()))})"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _callable(name, object, /):
    if object is not None and not callable(object):
        raise TypeError(f"Command() '{name}' must be callable or None")
    return object


class Command(metaclass=CommandType):
    """
    Declarative description of one command.

    Fields
    - use: one-line usage; its first word is the command name. Required.
    - aliases: alternative names for the first word of use.
    - short: one-line description shown in listings. Required if long is set.
    - long: description shown in the command's own help, after short.
    - args: positional-argument validator, validator(path, args).
    - deprecated: when set, running the command prints this notice and the
      command is hidden from listings.
    - hidden: hide the command from listings, help trees and man pages.
    - bind_flags / bind_persistent_flags: bind(flag_set) callbacks defining the
      command's flags; persistent flags also apply to every descendant.
    - normalize_flag / normalize_persistent_flag: normalize(flag_set, name)
      callbacks returning the canonical long flag name.
    - run: the action, run(context, container). The container's arguments are
      the positional arguments left after parsing. Exclusive with
      sub_commands.
    - sub_commands: child commands. Exclusive with run.
    - modify: modify(node) escape hatch receiving the compiled appbox.tree.Node.
    - version: when set, a --version flag prints it and skips everything else.

    Descriptions are never mutated after construction; call validate() to
    check their structure (the builder does so for every command it compiles).
    """

    __introspectable__ = (
        "use",
        "aliases",
        "short",
        "long",
        "args",
        "deprecated",
        "hidden",
        "bind_flags",
        "bind_persistent_flags",
        "normalize_flag",
        "normalize_persistent_flag",
        "run",
        "sub_commands",
        "modify",
        "version",
    )

    __displayable__ = (
        "use",
        "short",
        "version",
        "sub_commands",
    )

    def __init__(
            self,
            use="",
            /,
            *,
            aliases=(),
            short="",
            long="",
            args=None,
            deprecated="",
            hidden=False,
            bind_flags=None,
            bind_persistent_flags=None,
            normalize_flag=None,
            normalize_persistent_flag=None,
            run=None,
            sub_commands=(),
            modify=None,
            version=""
    ):
        for name, value in (("use", use), ("short", short), ("long", long), ("deprecated", deprecated), ("version", version)):
            if not isinstance(value, str):
                raise TypeError(f"Command() '{name}' must be a string")
        if isinstance(aliases, str) or not all(isinstance(alias, str) for alias in aliases):
            raise TypeError("Command() 'aliases' must be a sequence of strings")
        if isinstance(sub_commands, Command) or not all(isinstance(child, Command) for child in sub_commands):
            raise TypeError("Command() 'sub_commands' must be a sequence of commands")

        self._use = use
        self._aliases = tuple(aliases)
        self._short = short
        self._long = long
        self._args = _callable("args", args)
        self._deprecated = deprecated
        self._hidden = bool(hidden)
        self._bind_flags = _callable("bind_flags", bind_flags)
        self._bind_persistent_flags = _callable("bind_persistent_flags", bind_persistent_flags)
        self._normalize_flag = _callable("normalize_flag", normalize_flag)
        self._normalize_persistent_flag = _callable("normalize_persistent_flag", normalize_persistent_flag)
        self._run = _callable("run", run)
        self._sub_commands = tuple(sub_commands)
        self._modify = _callable("modify", modify)
        self._version = version

    @property
    def name(self):
        """The first word of use, or "" when use is blank."""
        words = self._use.split()
        return words[0] if words else ""

    def validate(self):
        """Raise InvalidCommandError if the description is structurally invalid."""
        if not self._use:
            raise InvalidCommandError("must set Command.use")
        if self._long and not self._short:
            raise InvalidCommandError("must set Command.short if Command.long is set")
        if self._run is not None and self._sub_commands:
            raise InvalidCommandError("cannot set both Command.run and Command.sub_commands")
        if self._run is None and not self._sub_commands:
            raise InvalidCommandError("must set one of Command.run and Command.sub_commands")


# ── Positional-argument validators ──────────────────────────────────────────


def no_args(path, args, /):
    """Reject any positional argument."""
    if args:
        raise UsageError(f'unknown command "{args[0]}" for "{path}"')


def arbitrary_args(path, args, /):
    """Accept any positional arguments."""


def _count(n, /):
    if isinstance(n, bool) or not isinstance(n, int) or n < 0:
        raise TypeError("argument counts must be non-negative integers")
    return n


def exact_args(n, /):
    _count(n)

    @rename(f"exact_args({n})")
    def validator(path, args, /):
        if len(args) != n:
            raise UsageError(f"accepts {n} arg(s), received {len(args)}")

    return validator


def minimum_n_args(n, /):
    _count(n)

    @rename(f"minimum_n_args({n})")
    def validator(path, args, /):
        if len(args) < n:
            raise UsageError(f"requires at least {n} arg(s), only received {len(args)}")

    return validator


def maximum_n_args(n, /):
    _count(n)

    @rename(f"maximum_n_args({n})")
    def validator(path, args, /):
        if len(args) > n:
            raise UsageError(f"accepts at most {n} arg(s), received {len(args)}")

    return validator


def range_args(low, high, /):
    _count(low)
    _count(high)
    if low > high:
        raise ValueError("range_args() lower bound exceeds upper bound")

    @rename(f"range_args({low}, {high})")
    def validator(path, args, /):
        if not low <= len(args) <= high:
            raise UsageError(f"accepts between {low} and {high} arg(s), received {len(args)}")

    return validator


# ── Flag helpers ────────────────────────────────────────────────────────────


def bind_multiple(*binders):
    """Combine several bind(flag_set) callbacks into one, called in order."""
    for binder in binders:
        if not callable(binder):
            raise TypeError("bind_multiple() arguments must be callable")

    @rename("bind_multiple")
    def bind(flag_set, /):
        for binder in binders:
            binder(flag_set)

    return bind


def mark_flag_required(flag_set, name, /):
    """Make the flag --name of flag_set mandatory; ValueError if it does not exist."""
    flag_set.mark_required(name)


__all__ = (
    "CommandType",
    "Command",
    "no_args",
    "arbitrary_args",
    "exact_args",
    "minimum_n_args",
    "maximum_n_args",
    "range_args",
    "bind_multiple",
    "mark_flag_required",
)
