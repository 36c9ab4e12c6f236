"""
appbox faults: exception hierarchy, exit codes and error rendering.

Scope
- CommandException: base type for everything the command layer raises, with
  a rich renderer so consoles show a clean one-line message.
  • InvalidCommandError: structural misuse of the command model (build time).
  • UsageError: parser and positional-argument validation failures.
  • SubCommandRequiredError / UnknownSubCommandError: a parent command was
    invoked without selecting a valid child.
  • InvalidArgumentError: raised by leaf actions to reject their input; the
    executor prints the failing command's usage before propagating it.
- ExitError: carries an explicit, non-zero process exit code.
- get_exit_code(): maps any exception (or None) to a process exit code.
- print_error(): render an exception on a container's stderr via rich.

Chains
- An exception "wraps" another through __cause__ (raise ... from ...).
  get_exit_code() and is_invalid_argument_error() walk that chain, so an
  ExitError keeps its code however many layers wrap it.

Styling
- Define a mapping named __styles__ in __main__ to restyle the
  "error-message" entry used by the renderers (only visible on terminals).
"""
from collections import defaultdict

from rich.console import Console
from rich.text import Text

from .utils import Unset


def _styles():
    return defaultdict(str, {
        "error-message": "bold #FF4DA6",
    } | getattr(__import__("__main__"), "__styles__", {}))


def _chain(error, /):
    """Yield error and every exception it wraps through __cause__, once each."""
    seen = set()
    while error is not None and id(error) not in seen:
        seen.add(id(error))
        yield error
        error = error.__cause__


class CommandException(Exception):
    """
    Base exception for the command layer.

    The message is optional so subclasses can be raised bare; str() of the
    exception is the message.
    """

    def __init__(self, message=Unset, /):
        if not isinstance(message, str | Unset):
            raise TypeError(f"{type(self).__name__}() argument must be a string")
        self.message = message or ""
        super().__init__(self.message)

    def __str__(self):
        return self.message

    def __rich__(self):
        return Text(str(self), _styles()["error-message"])


class InvalidCommandError(CommandException): ...
class UsageError(CommandException): ...
class SubCommandRequiredError(CommandException): ...
class UnknownSubCommandError(CommandException): ...


class InvalidArgumentError(CommandException):
    """
    The caller's leaf action rejected its positional input.

    Besides propagating like any other error, it makes the executor write the
    failing command's usage to stderr.
    """


class ExitError(Exception):
    """
    An error carrying an explicit process exit code.

    Invariants
    - exit_code is an int and never 0.
    - When built around another exception, that exception is __cause__ and
      provides the message.
    """

    def __init__(self, exit_code, message, /):
        if isinstance(exit_code, bool) or not isinstance(exit_code, int):
            raise TypeError("ExitError() exit code must be an integer")
        if exit_code == 0:
            raise ValueError("ExitError() exit code cannot be 0")
        if not isinstance(message, str):
            raise TypeError("ExitError() message must be a string")
        self.exit_code = exit_code
        self.message = message
        super().__init__(message)

    def __str__(self):
        return self.message

    def __rich__(self):
        return Text(str(self), _styles()["error-message"])


def new_error(exit_code, message, /):
    """Return an ExitError with the given code and message."""
    return ExitError(exit_code, message)


def new_errorf(exit_code, format, /, *args):
    """Return an ExitError whose message is format % args."""
    return ExitError(exit_code, format % args if args else format)


def wrap_error(exit_code, error, /):
    """Return an ExitError wrapping error (kept as __cause__)."""
    if not isinstance(error, BaseException):
        raise TypeError("wrap_error() second argument must be an exception")
    wrapper = ExitError(exit_code, str(error))
    wrapper.__cause__ = error
    return wrapper


def get_exit_code(error, /):
    """
    Translate an exception into a process exit code.

    Returns
    - 0 when error is None.
    - The exit code of the first ExitError found in the __cause__ chain.
    - 1 otherwise.
    """
    if error is None:
        return 0
    for cause in _chain(error):
        if isinstance(cause, ExitError):
            return cause.exit_code
    return 1


def new_invalid_argument_error(message, /):
    """Return an InvalidArgumentError carrying message."""
    return InvalidArgumentError(message)


def new_invalid_argument_errorf(format, /, *args):
    """Return an InvalidArgumentError with a printf-style message (format % args)."""
    return InvalidArgumentError(format % args if args else format)


def wrap_invalid_argument_error(error, /):
    """Return an InvalidArgumentError wrapping error (kept as __cause__)."""
    if not isinstance(error, BaseException):
        raise TypeError("wrap_invalid_argument_error() argument must be an exception")
    wrapper = InvalidArgumentError(str(error))
    wrapper.__cause__ = error
    return wrapper


def is_invalid_argument_error(error, /):
    """True if error, or anything in its __cause__ chain, is an InvalidArgumentError."""
    return any(isinstance(cause, InvalidArgumentError) for cause in _chain(error))


def print_error(stderr, error, /):
    """
    Print the message of error on the stderr stream, followed by a newline.

    Nothing is printed when the message is empty. Plain streams receive the
    message verbatim; terminals get it styled through a rich console (no
    markup or highlighting).
    """
    if not (message := str(error)):
        return
    isatty = getattr(stderr, "isatty", None)
    if not (isatty and isatty()):
        stderr.write(message + "\n")
        return
    console = Console(file=stderr, force_terminal=True, highlight=False, soft_wrap=True)
    console.print(error if hasattr(error, "__rich__") else Text(message))


__all__ = (
    "CommandException",
    "InvalidCommandError",
    "UsageError",
    "SubCommandRequiredError",
    "UnknownSubCommandError",
    "InvalidArgumentError",
    "ExitError",
    "new_error",
    "new_errorf",
    "wrap_error",
    "get_exit_code",
    "new_invalid_argument_error",
    "new_invalid_argument_errorf",
    "wrap_invalid_argument_error",
    "is_invalid_argument_error",
    "print_error",
)
