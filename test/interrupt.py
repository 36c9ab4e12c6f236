"""
Interrupt tests (cancellation contexts and signal handling).

Conventions
- Test method names follow CamelCase per project convention.
- Signals are delivered with signal.raise_signal from the main thread.
"""
import signal
import threading
import unittest
from unittest import TestCase

from appbox.interrupt import Cancelled, Context, Interrupted, background, handle


class TestContext(TestCase):
    def testFreshContextIsActive(self):
        context = background()
        self.assertFalse(context.cancelled)
        self.assertIsNone(context.cause)
        self.assertIsNone(context.parent)
        context.check()

    def testCancelPropagatesToChildren(self):
        parent = background()
        child = parent.child()
        grandchild = child.child()
        parent.cancel()
        self.assertTrue(child.cancelled)
        self.assertTrue(grandchild.cancelled)
        self.assertIsInstance(grandchild.cause, Cancelled)

    def testChildCancelDoesNotReachParent(self):
        parent = background()
        parent.child().cancel()
        self.assertFalse(parent.cancelled)

    def testFirstCauseWins(self):
        context = background()
        context.cancel(RuntimeError("first"))
        context.cancel(RuntimeError("second"))
        self.assertEqual(str(context.cause), "first")

    def testCheckRaisesCause(self):
        context = background()
        context.cancel(TimeoutError("late"))
        with self.assertRaises(TimeoutError):
            context.check()

    def testChildOfCancelledParentStartsCancelled(self):
        parent = background()
        parent.cancel()
        self.assertTrue(Context(parent).cancelled)

    def testWaitReturnsWhenCancelled(self):
        context = background()
        timer = threading.Timer(0.05, context.cancel)
        timer.start()
        self.assertTrue(context.wait(5))
        timer.join()

    def testWaitTimesOut(self):
        self.assertFalse(background().wait(0.01))

    def testRejectsNonContextParent(self):
        with self.assertRaises(TypeError):
            Context(object())


class TestHandle(TestCase):
    def testSignalCancelsChild(self):
        context = background()
        with handle(context) as child:
            signal.raise_signal(signal.SIGINT)
            self.assertTrue(child.cancelled)
            self.assertIsInstance(child.cause, Interrupted)
            self.assertEqual(child.cause.signum, signal.SIGINT)
        self.assertFalse(context.cancelled)

    def testHandlersAreRestored(self):
        previous = signal.getsignal(signal.SIGINT)
        with handle(background()):
            self.assertIsNot(signal.getsignal(signal.SIGINT), previous)
        self.assertIs(signal.getsignal(signal.SIGINT), previous)

    def testSecondSignalFallsThrough(self):
        previous = signal.signal(signal.SIGINT, signal.default_int_handler)
        try:
            with handle(background()) as child:
                signal.raise_signal(signal.SIGINT)
                self.assertTrue(child.cancelled)
                with self.assertRaises(KeyboardInterrupt):
                    signal.raise_signal(signal.SIGINT)
        finally:
            signal.signal(signal.SIGINT, previous)

    def testOffMainThreadInstallsNothing(self):
        previous = signal.getsignal(signal.SIGINT)
        seen = []

        def target():
            with handle(background()) as child:
                seen.append((child.cancelled, signal.getsignal(signal.SIGINT)))

        thread = threading.Thread(target=target)
        thread.start()
        thread.join()
        self.assertEqual(seen, [(False, previous)])


if __name__ == "__main__":
    unittest.main()
