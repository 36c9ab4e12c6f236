"""
Utility helpers tests (Unset sentinel, coalesce, mirror, Lazy).

Conventions
- Test method names follow CamelCase per project convention.
"""
import threading
import unittest
from unittest import TestCase

from appbox.utils import Lazy, Unset, UnsetType, coalesce, mirror, rename


class TestUnset(TestCase):
    def testSingletonIdentity(self):
        self.assertIs(UnsetType(), Unset)

    def testFalsyAndRepr(self):
        self.assertFalse(Unset)
        self.assertEqual(repr(Unset), "Unset")

    def testNotSubclassable(self):
        with self.assertRaises(TypeError):
            class Sub(UnsetType):  # noqa
                pass

    def testUnionWithTypes(self):
        self.assertTrue(isinstance(Unset, str | Unset))
        self.assertTrue(isinstance("x", Unset | str))
        self.assertFalse(isinstance(None, str | Unset))

    def testCoalesceOnlyReplacesUnset(self):
        self.assertEqual(coalesce(Unset, "x"), "x")
        self.assertIsNone(coalesce(None, "x"))
        self.assertEqual(coalesce("", "x"), "")


class TestMirror(TestCase):
    def testReturnsImmutableCopies(self):
        class Box:
            items = mirror("items")

            def __init__(self):
                self._items = ["a", ["b"]]

        box = Box()
        self.assertEqual(box.items, ("a", ("b",)))
        with self.assertRaises(AttributeError):
            box.items = ()

    def testCopiesMappingsAndSets(self):
        class Box:
            options = mirror("options")

            def __init__(self):
                self._options = {"choices": ["x"], "tags": {"t"}}

        box = Box()
        options = box.options
        self.assertEqual(options, {"choices": ("x",), "tags": frozenset({"t"})})
        options["extra"] = 1
        self.assertNotIn("extra", box._options)

    def testRenameSetsNames(self):
        @rename("pretty")
        def ugly():
            pass

        self.assertEqual(ugly.__name__, "pretty")
        self.assertEqual(ugly.__qualname__, "pretty")


class TestLazy(TestCase):
    def testComputesOnce(self):
        calls = []
        cell = Lazy(lambda: calls.append(1) or len(calls))
        self.assertFalse(cell.done)
        self.assertEqual(cell.get(), 1)
        self.assertEqual(cell.get(), 1)
        self.assertTrue(cell.done)
        self.assertEqual(calls, [1])

    def testCachesError(self):
        calls = []

        def fail():
            calls.append(1)
            raise ValueError("boom")

        cell = Lazy(fail)
        for _ in range(3):
            with self.assertRaises(ValueError):
                cell.get()
        self.assertEqual(calls, [1])

    def testConcurrentCallersShareResult(self):
        calls = []
        gate = threading.Event()

        def slow():
            gate.wait(1)
            calls.append(1)
            return object()

        cell = Lazy(slow)
        results = []
        threads = [threading.Thread(target=lambda: results.append(cell.get())) for _ in range(8)]
        for thread in threads:
            thread.start()
        gate.set()
        for thread in threads:
            thread.join()
        self.assertEqual(calls, [1])
        self.assertEqual(len({id(result) for result in results}), 1)

    def testRejectsNonCallable(self):
        with self.assertRaises(TypeError):
            Lazy(1)


if __name__ == "__main__":
    unittest.main()
