"""
Flag set tests (recording, targets, normalization, parser application).

Conventions
- Test method names follow CamelCase per project convention.
"""
import argparse
import unittest
from unittest import TestCase

from appbox.flags import FlagSet


class Options:
    def __init__(self):
        self.verbose = False
        self.name = "default-name"


class TestFlagSet(TestCase):
    def testRecordsInOrder(self):
        flag_set = FlagSet()
        flag_set.add_argument("-v", "--verbose", action="store_true")
        flag_set.add_argument("--name")
        self.assertEqual([flag.names for flag in flag_set], [("-v", "--verbose"), ("--name",)])
        self.assertEqual(len(flag_set), 2)

    def testRejectsPositionalNames(self):
        with self.assertRaises(ValueError):
            FlagSet().add_argument("name")
        with self.assertRaises(ValueError):
            FlagSet().add_argument("--")
        with self.assertRaises(TypeError):
            FlagSet().add_argument()

    def testDefaultTargetIsNamespace(self):
        flag_set = FlagSet()
        flag = flag_set.add_argument("--name")
        self.assertIs(flag.target, flag_set.namespace)

    def testApplyIgnoresTargetValues(self):
        options = Options()
        options.verbose = True
        flag_set = FlagSet()
        flag_set.add_argument("--name", target=options)
        flag_set.add_argument("--verbose", action="store_true", target=options)
        parser = argparse.ArgumentParser()
        (name, target), (verbose, _) = flag_set.apply(parser)
        self.assertIs(target, options)
        self.assertIsNone(name.default)
        self.assertIs(verbose.default, False)

    def testExplicitDefaultWins(self):
        options = Options()
        flag_set = FlagSet()
        flag_set.add_argument("--name", default="explicit", target=options)
        (action, _), = flag_set.apply(argparse.ArgumentParser())
        self.assertEqual(action.default, "explicit")

    def testNormalization(self):
        flag_set = FlagSet()
        flag_set.add_argument("--dry_run", action="store_true")
        flag_set.set_normalize(lambda flag_set, name: name.replace("_", "-"))
        self.assertEqual(flag_set.normalized("--DRY_RUN".lower()), "--dry-run")
        self.assertEqual(flag_set.normalized("-d"), "-d")
        self.assertIsNotNone(flag_set.lookup("dry-run"))
        (action, _), = flag_set.apply(argparse.ArgumentParser())
        self.assertEqual(action.option_strings, ["--dry-run"])

    def testSetNormalizeRequiresCallable(self):
        with self.assertRaises(TypeError):
            FlagSet().set_normalize("nope")

    def testMarkRequired(self):
        flag_set = FlagSet()
        flag_set.add_argument("--name")
        flag_set.mark_required("name")
        (action, _), = flag_set.apply(argparse.ArgumentParser())
        self.assertTrue(action.required)


if __name__ == "__main__":
    unittest.main()
