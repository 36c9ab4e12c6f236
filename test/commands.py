"""
Command model tests (construction, validation, validators, flag helpers).

Conventions
- Test method names follow CamelCase per project convention.
- Tests use the public API (Command, validators, bind_multiple).
"""
import unittest
from unittest import TestCase

from appbox import (
    Command,
    FlagSet,
    InvalidCommandError,
    UsageError,
    arbitrary_args,
    bind_multiple,
    exact_args,
    mark_flag_required,
    maximum_n_args,
    minimum_n_args,
    no_args,
    range_args,
)


def _run(context, container):
    pass


class TestCommandModel(TestCase):
    def testFieldsAreReadOnly(self):
        command = Command("tool <file>", aliases=["t"], short="A tool", run=_run)
        self.assertEqual(command.name, "tool")
        self.assertEqual(command.aliases, ("t",))
        with self.assertRaises(AttributeError):
            command.short = "changed"

    def testSubCommandsExposedAsTuple(self):
        child = Command("child", run=_run)
        command = Command("parent", sub_commands=[child])
        self.assertEqual(command.sub_commands, (child,))

    def testReprIsStable(self):
        self.assertEqual(repr(Command("tool", run=_run)), "command(use='tool', short='', version='', sub_commands=())")

    def testTypesChecked(self):
        with self.assertRaises(TypeError):
            Command(1, run=_run)
        with self.assertRaises(TypeError):
            Command("tool", aliases="t", run=_run)
        with self.assertRaises(TypeError):
            Command("tool", run="not callable")
        with self.assertRaises(TypeError):
            Command("tool", sub_commands=[object()])


class TestCommandValidation(TestCase):
    def testValidLeaf(self):
        Command("tool", run=_run).validate()

    def testValidParent(self):
        Command("tool", sub_commands=[Command("child", run=_run)]).validate()

    def testMissingUse(self):
        with self.assertRaisesRegex(InvalidCommandError, "must set Command.use"):
            Command(run=_run).validate()

    def testLongRequiresShort(self):
        with self.assertRaisesRegex(InvalidCommandError, "Command.short"):
            Command("tool", long="Details", run=_run).validate()

    def testRunAndSubCommandsExclusive(self):
        with self.assertRaisesRegex(InvalidCommandError, "cannot set both"):
            Command("tool", run=_run, sub_commands=[Command("child", run=_run)]).validate()

    def testRunOrSubCommandsRequired(self):
        with self.assertRaisesRegex(InvalidCommandError, "must set one of"):
            Command("tool").validate()


class TestValidators(TestCase):
    def testNoArgs(self):
        no_args("app sub", [])
        with self.assertRaisesRegex(UsageError, 'unknown command "x" for "app sub"'):
            no_args("app sub", ["x"])

    def testArbitraryArgs(self):
        arbitrary_args("app", ["a", "b", "c"])

    def testExactArgs(self):
        exact_args(2)("app", ["a", "b"])
        with self.assertRaisesRegex(UsageError, r"accepts 2 arg\(s\), received 1"):
            exact_args(2)("app", ["a"])

    def testMinimumArgs(self):
        minimum_n_args(1)("app", ["a", "b"])
        with self.assertRaisesRegex(UsageError, r"requires at least 1 arg\(s\), only received 0"):
            minimum_n_args(1)("app", [])

    def testMaximumArgs(self):
        maximum_n_args(1)("app", [])
        with self.assertRaisesRegex(UsageError, r"accepts at most 1 arg\(s\), received 2"):
            maximum_n_args(1)("app", ["a", "b"])

    def testRangeArgs(self):
        range_args(1, 2)("app", ["a"])
        with self.assertRaisesRegex(UsageError, r"accepts between 1 and 2 arg\(s\), received 3"):
            range_args(1, 2)("app", ["a", "b", "c"])
        with self.assertRaises(ValueError):
            range_args(3, 1)

    def testCountsChecked(self):
        with self.assertRaises(TypeError):
            exact_args(-1)
        with self.assertRaises(TypeError):
            exact_args("1")


class TestFlagHelpers(TestCase):
    def testBindMultipleCallsInOrder(self):
        calls = []
        bind = bind_multiple(lambda flag_set: calls.append("a"), lambda flag_set: calls.append("b"))
        bind(FlagSet())
        self.assertEqual(calls, ["a", "b"])

    def testMarkFlagRequired(self):
        flag_set = FlagSet()
        flag = flag_set.add_argument("--name")
        mark_flag_required(flag_set, "name")
        self.assertTrue(flag.options["required"])
        with self.assertRaises(ValueError):
            mark_flag_required(flag_set, "missing")


if __name__ == "__main__":
    unittest.main()
