"""
Pipeline module tests (end-to-end runs, fault reporting, behaviors).

Scope
- Validate end-to-end runs: exit codes, captured output, injected streams.
- Validate fault aggregation on the error channel (one fault per line).
- Validate token sources (shell-split strings, iterables) and repeated runs.
- Validate custom pipeline behaviors.

Conventions
- Test method names follow CamelCase per project convention.
- Runs go through run_in_memory() unless a test targets the streams themselves.
"""
import io
import unittest
from unittest import TestCase

from helmsman import (
    Application,
    Context,
    Operand,
    Option,
    Pipeline,
    Settings,
    command,
    default,
    run,
)
from helmsman.testing import run_in_memory

CALLS = []


@command(name="app")
class App:
    def __init__(self, verbose=False):
        self.verbose = verbose

    def Do1(self, Opt1=None, Arg1=Operand()):
        CALLS.append(("Do1", Opt1, Arg1, self.verbose))

    def check(self, Opt1=Option(type=str), count: int = 0):
        CALLS.append(("check", Opt1, count))

    def both(self, Opt1=Option(type=str), Arg1=Operand()):
        pass

    def echo(self, context: Context, text=Operand()):
        context.console.print(text)

    def shout(self, text=Operand()):
        print(text.upper())

    def read(self, context: Context):
        CALLS.append(("read", context.stdin.read()))

    def rest(self, context: Context, first=Operand()):
        CALLS.append(("rest", first, context.result.remaining))

    def cat(self, files: list[str] = Operand()):
        CALLS.append(("cat", files))

    def exit(self, code: int = Operand()):
        return code

    def fail(self):
        raise RuntimeError("boom")


@command(name="svc")
class Service:
    @default
    def status(self):
        print("running")


class TestRun(TestCase):
    """End-to-end runs."""

    def setUp(self):
        CALLS.clear()

    def testHandlerReceivesValues(self):
        result = run_in_memory(App, "--verbose Do1 x --Opt1 y")
        self.assertEqual(result.exit_code, 1)

        result = run_in_memory(App, "Do1 x --Opt1 y --verbose")
        self.assertEqual(result.exit_code, 0)
        self.assertEqual(CALLS, [("Do1", "y", "x", True)])
        self.assertEqual(result.output, "")

    def testShellSplitting(self):
        run_in_memory(App, 'Do1 "a b" --Opt1=c')
        self.assertEqual(CALLS, [("Do1", "c", "a b", False)])

    def testTokenIterables(self):
        run_in_memory(App, ["Do1", "a b"])
        self.assertEqual(CALLS, [("Do1", None, "a b", False)])

    def testInvalidTokens(self):
        with self.assertRaises(TypeError):
            run_in_memory(App, ["Do1", 1])
        with self.assertRaises(TypeError):
            run_in_memory(App, 42)

    def testReturnedExitCode(self):
        self.assertEqual(run_in_memory(App, "exit 3").exit_code, 3)

    def testContextConsole(self):
        result = run_in_memory(App, "echo hello")
        self.assertEqual(result.stdout, "hello\n")

    def testPrintIsCaptured(self):
        self.assertEqual(run_in_memory(App, "shout hey").stdout, "HEY\n")

    def testStdin(self):
        run_in_memory(App, "read", input="data")
        self.assertEqual(CALLS, [("read", "data")])

    def testDefaultHandler(self):
        result = run_in_memory(Service, "")
        self.assertEqual((result.exit_code, result.stdout), (0, "running\n"))

    def testRemainingTokens(self):
        run_in_memory(App, "rest a b --c", Settings(throw_on_unexpected_argument=False))
        self.assertEqual(CALLS, [("rest", "a", ("b", "--c"))])

    def testArgumentSeparator(self):
        run_in_memory(App, "cat -- -a --b", Settings(allow_argument_separator=True))
        self.assertEqual(CALLS, [("cat", ["-a", "--b"])])

    def testRepeatedRunsAreIndependent(self):
        application = Application(App)
        first = run_in_memory(application, "exit 4")
        second = run_in_memory(application, "exit 4")
        self.assertEqual(first.exit_code, second.exit_code)
        self.assertEqual(first.output, second.output)

    def testRunWithInjectedStreams(self):
        stdout, stderr = io.StringIO(), io.StringIO()
        code = run(App, None, ["echo", "hi"], stdout=stdout, stderr=stderr)
        self.assertEqual(code, 0)
        self.assertEqual(stdout.getvalue(), "hi\n")
        self.assertEqual(stderr.getvalue(), "")

    def testSettingsMustBeSettings(self):
        with self.assertRaises(TypeError):
            Application(App, {"colorful": True})


class TestFaultReporting(TestCase):
    """Faults printed on the error channel."""

    def setUp(self):
        CALLS.clear()

    def testFaultsAreAggregated(self):
        result = run_in_memory(App, "check --bogus --count abc")
        self.assertEqual(result.exit_code, 1)
        self.assertEqual(result.stdout, "")
        self.assertEqual(result.stderr, (
            "Unrecognized option '--bogus'\n"
            "Missing required option '--Opt1'\n"
            "Invalid value 'abc' for 'count': expected a whole number\n"
        ))
        self.assertEqual(CALLS, [])

    def testMissingArgumentsBeforeOptions(self):
        result = run_in_memory(App, "both")
        self.assertEqual(result.stderr, "Missing required argument 'Arg1'\nMissing required option '--Opt1'\n")

    def testUnexpectedArgument(self):
        result = run_in_memory(App, "Do1 a b")
        self.assertEqual((result.exit_code, result.stderr), (1, "Unrecognized command or argument 'b'\n"))

    def testHandlerFailure(self):
        result = run_in_memory(App, "fail")
        self.assertEqual((result.exit_code, result.stderr), (1, "boom\n"))

    def testColorfulFaults(self):
        result = run_in_memory(App, "Do1 a --bogus", Settings(colorful=True))
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Unrecognized option", result.stderr)


class TestBehaviors(TestCase):
    """Custom pipeline behaviors."""

    def setUp(self):
        CALLS.clear()

    def testUseRunsAfterBinding(self):
        seen = []

        def audit(context, proceed):
            seen.append(context.command.name)
            return proceed()

        application = Application(App).use(audit)
        self.assertEqual(run_in_memory(application, "exit 2").exit_code, 2)
        self.assertEqual(seen, ["exit"])

    def testBehaviorCanShortCircuit(self):
        application = Application(App).use(lambda context, proceed: 9)
        self.assertEqual(run_in_memory(application, "Do1 x").exit_code, 9)
        self.assertEqual(CALLS, [])

    def testUsedBehaviorsDoNotSeeFaultyRuns(self):
        seen = []
        application = Application(App).use(lambda context, proceed: seen.append(context) or proceed())
        self.assertEqual(run_in_memory(application, "Do1").exit_code, 1)
        self.assertEqual(seen, [])

    def testEmptyPipeline(self):
        self.assertEqual(Pipeline(())(None), 0)

    def testPipelineOrder(self):
        order = []

        def first(context, proceed):
            order.append("first")
            return proceed() + 1

        def second(context, proceed):
            order.append("second")
            return 10

        self.assertEqual(Pipeline((first, second))(None), 11)
        self.assertEqual(order, ["first", "second"])

    def testBehaviorsMustBeCallable(self):
        with self.assertRaises(TypeError):
            Pipeline(("nope",))
        with self.assertRaises(TypeError):
            Application(App).use("nope")


if __name__ == "__main__":
    unittest.main()
