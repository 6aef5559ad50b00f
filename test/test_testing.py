"""
In-memory harness tests.

Scope
- Validate that run_in_memory() captures both channels and their interleaving.
- Validate that it accepts declarations and prebuilt applications alike.

Conventions
- Test method names follow CamelCase per project convention.
"""
import sys
import unittest
from unittest import TestCase

from helmsman import Application, Context, Settings, command
from helmsman.testing import RunResult, run_in_memory


@command(name="noisy")
def noisy(context: Context, fail=False):
    context.console.print("first")
    print("second", file=sys.stderr)
    print("third")
    return 2 if fail else None


class TestRunInMemory(TestCase):
    """Captured runs."""

    def testChannelsAndOrder(self):
        result = run_in_memory(noisy)
        self.assertIsInstance(result, RunResult)
        self.assertEqual(result.exit_code, 0)
        self.assertEqual(result.stdout, "first\nthird\n")
        self.assertEqual(result.stderr, "second\n")
        self.assertEqual(result.output, "first\nsecond\nthird\n")

    def testExitCode(self):
        self.assertEqual(run_in_memory(noisy, "--fail").exit_code, 2)

    def testPrebuiltApplication(self):
        application = Application(noisy, Settings(colorful=False))
        self.assertEqual(run_in_memory(application, ["--fail"]).exit_code, 2)

    def testStreamsAreRestored(self):
        stdout, stderr = sys.stdout, sys.stderr
        run_in_memory(noisy)
        self.assertIs(sys.stdout, stdout)
        self.assertIs(sys.stderr, stderr)


if __name__ == "__main__":
    unittest.main()
