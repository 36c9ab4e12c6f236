"""
appbox flag sets: argparse flag definitions recorded for later binding.

Why record instead of adding to a parser directly
- A command's persistent flags apply to the command and all of its
  descendants, so one definition must be replayed on several parsers.
- Normalization can be installed after flags were defined and still applies
  to every name.

FlagSet.add_argument() accepts everything argparse.ArgumentParser.add_argument()
accepts for optional arguments, plus `target`: the object whose attribute
(named after the argparse dest) receives the parsed value. Without a target
values land on `flag_set.namespace`.

Example
    class Flags:
        def __init__(self):
            self.verbose = False

        def bind(self, flag_set):
            flag_set.add_argument("-v", "--verbose", action="store_true", help="Be chatty", target=self)
"""
import argparse

from .utils import Unset, coalesce, mirror


class Flag:
    """One recorded flag definition."""

    names = mirror("names")
    options = mirror("options")

    def __init__(self, names, options, target, /):
        self._names = tuple(names)
        self._options = dict(options)
        self.target = target

    def __repr__(self):
        return f"flag(names={self._names!r})"


class FlagSet:
    """
    Ordered collection of flag definitions with an optional name normalizer.

    The normalizer is called as normalize(flag_set, name) with the long flag
    name without its leading dashes and returns the canonical name.
    """

    def __init__(self):
        self._flags = []
        self._normalize = None
        self.namespace = argparse.Namespace()

    def __iter__(self):
        return iter(self._flags)

    def __len__(self):
        return len(self._flags)

    def add_argument(self, *names, target=Unset, **options):
        if not names:
            raise TypeError("add_argument() requires at least one flag name")
        for name in names:
            if not isinstance(name, str) or not name.startswith("-") or name.strip("-") == "":
                raise ValueError(f"invalid flag name: {name!r}")
        flag = Flag(names, options, coalesce(target, self.namespace))
        self._flags.append(flag)
        return flag

    @property
    def normalize(self):
        return self._normalize

    def set_normalize(self, function, /):
        if function is not None and not callable(function):
            raise TypeError("set_normalize() argument must be callable")
        self._normalize = function

    def normalized(self, option, /):
        """Return the option string ("--name" or "-n") with its name normalized."""
        if self._normalize is None or not option.startswith("--"):
            return option
        return "--" + self._normalize(self, option[2:])

    def lookup(self, name, /):
        """Return the flag whose long name (without dashes) is name, or None."""
        wanted = self.normalized("--" + name)
        for flag in self._flags:
            if wanted in map(self.normalized, flag._names):
                return flag
        return None

    def mark_required(self, name, /):
        if (flag := self.lookup(name)) is None:
            raise ValueError(f"no such flag -{name}")
        flag._options["required"] = True

    def apply(self, parser, /):
        """
        Add every flag to parser and return (action, target) bindings.

        Defaults come from the definition (or argparse's own default), never
        from the target, so every parse resets absent flags.
        """
        bindings = []
        for flag in self._flags:
            action = parser.add_argument(*map(self.normalized, flag._names), **flag._options)
            bindings.append((action, flag.target))
        return bindings


__all__ = (
    "Flag",
    "FlagSet",
)
