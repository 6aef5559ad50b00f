"""
Faults module tests (fault options, replacement, rendering, aggregation).

Scope
- Validate CommandException options (code defaults, overrides) and __replace__.
- Validate plain and hinted rendering through a rich Console.
- Validate CommandExit aggregation and rendering order.
- Validate FaultCode stability and normalize().

Conventions
- Test method names follow CamelCase per project convention.
- Rendering is captured with Console(file=io.StringIO()) and colors disabled.
"""
import io
import unittest
from unittest import TestCase

from rich.console import Console

from helmsman import (
    CommandException,
    CommandExit,
    FaultCode,
    InvalidChoiceError,
    MissingArgumentError,
    UnrecognizedOptionError,
    ValueConversionError,
)


def rendered(renderable):
    console = Console(file=io.StringIO(), color_system=None, highlight=False, markup=False, emoji=False, soft_wrap=True)
    console.print(renderable)
    return console.file.getvalue()


class TestCommandException(TestCase):
    """Single faults."""

    def testMessageAndDefaultCode(self):
        fault = UnrecognizedOptionError("Unrecognized option '--x'", token="--x")
        self.assertEqual(str(fault), "Unrecognized option '--x'")
        self.assertEqual(fault.options["code"], FaultCode.UNRECOGNIZED_OPTION)
        self.assertEqual(fault.options["token"], "--x")

    def testCodeOverride(self):
        fault = MissingArgumentError("Missing value", code=FaultCode.MISSING_OPTION_VALUE)
        self.assertEqual(fault.options["code"], FaultCode.MISSING_OPTION_VALUE)

    def testOptionsAreReadOnly(self):
        fault = CommandException("failure")
        with self.assertRaises(TypeError):
            fault.options["code"] = 1

    def testChoiceFaultsAreConversionFaults(self):
        self.assertTrue(issubclass(InvalidChoiceError, ValueConversionError))

    def testReplaceKeepsMessageAndType(self):
        fault = ValueConversionError("Invalid value", token="abc")
        replaced = fault.__replace__(colorful=True)
        self.assertIsInstance(replaced, ValueConversionError)
        self.assertEqual(str(replaced), "Invalid value")
        self.assertEqual(replaced.options["token"], "abc")
        self.assertTrue(replaced.options["colorful"])
        self.assertNotIn("colorful", fault.options)

    def testPlainRendering(self):
        self.assertEqual(rendered(CommandException("Something failed")), "Something failed\n")

    def testHintRendering(self):
        fault = CommandException("Something failed", hint="try again")
        self.assertEqual(rendered(fault), "Something failed\n → try again\n")


class TestCommandExit(TestCase):
    """Aggregated faults."""

    def testRendersOneFaultPerLine(self):
        exit = CommandExit([
            UnrecognizedOptionError("Unrecognized option '--bogus'"),
            MissingArgumentError("Missing required argument 'Arg1'"),
        ])
        self.assertEqual(rendered(exit), "Unrecognized option '--bogus'\nMissing required argument 'Arg1'\n")

    def testReplaceForwardsOptions(self):
        exit = CommandExit([CommandException("a")]).__replace__(colorful=False)
        self.assertEqual(exit.options, {"colorful": False})
        self.assertEqual(len(exit.exceptions), 1)

    def testSplitKeepsTheType(self):
        exit = CommandExit([
            UnrecognizedOptionError("a"),
            MissingArgumentError("b"),
        ], colorful=False)
        matched, rest = exit.split(MissingArgumentError)
        self.assertIsInstance(matched, CommandExit)
        self.assertEqual([str(fault) for fault in matched.exceptions], ["b"])
        self.assertEqual([str(fault) for fault in rest.exceptions], ["a"])


class TestFaultCode(TestCase):
    """Stable fault codes."""

    def testValues(self):
        self.assertEqual(FaultCode.UNRECOGNIZED_OPTION, 11111)
        self.assertEqual(FaultCode.MISSING_ARGUMENT, 11122)
        self.assertEqual(FaultCode.HANDLER_FAILURE, 11141)

    def testNormalize(self):
        self.assertEqual(FaultCode.INVALID_VALUE.normalize(), "11131")


if __name__ == "__main__":
    unittest.main()
