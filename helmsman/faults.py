"""
Helmsman faults (build errors, invocation faults) and rendering.

Scope
- ConfigurationError: malformed command declarations, raised while the command tree is
  built. These are programmer errors and always propagate.
- FaultCode: canonical, stable numeric identifiers for every user-facing fault. Codes
  are grouped by domain (options, operands, binding, handlers).
- CommandException: base type for invocation faults. Carries a message plus options
  (code, argument, token, hint, colorful, ...) and knows how to render itself.
- CommandExit: ExceptionGroup aggregating every fault of one invocation.

UX goals
- One fault per line on the error channel, in the order the faults were found.
- Plain text by default; styling only when the application is configured as colorful.

Integration
- The parser and the invoker collect faults instead of raising them one by one; the
  pipeline raises a CommandExit when at least one fault was collected and the error
  translation behavior prints it and maps it to exit code 1.
"""
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Group
from rich.text import Text

from .utils import Unset

STYLES = {
    "message": "bold #FF4DA6",  # friendly pinky message
    "token": "bold #00E5FF",  # neon cyan for the offending token
    "hint-arrow": "#9CE19C dim",  # gentle green arrow
    "hint": "italic #9CE19C",  # gentle green hint text
}


class ConfigurationError(Exception):
    """
    Raised when a command declaration is malformed or inconsistent.

    Typical causes
    - a default handler that declares parameters, or two default handlers
    - two options of one command sharing an alias (built-in help/version aliases included)
    - two sibling commands sharing a name
    - a list operand that is not the last operand
    - a positional (operand) marker on a constructor parameter
    - variadic parameters (*args, **kwargs) or parameter types without a converter
    """


class FaultCode(IntEnum):
    """
    canonical fault codes used across the cli (stable identifiers).

    grouping (by high-level domain)
    - options (1111x)
      • UNRECOGNIZED_OPTION, DUPLICATE_OPTION, MISSING_OPTION_VALUE, MISSING_OPTION
    - operands (1112x)
      • UNEXPECTED_ARGUMENT, MISSING_ARGUMENT
    - binding (1113x)
      • INVALID_VALUE, INVALID_CHOICE
    - handlers (1114x)
      • HANDLER_FAILURE

    normalize() allows host remapping to custom labels while keeping code-stability.
    """
    # --- option errors (1111x) ---
    UNRECOGNIZED_OPTION  = 11111
    DUPLICATE_OPTION     = 11112
    MISSING_OPTION_VALUE = 11113
    MISSING_OPTION       = 11114

    # --- operand errors (1112x) ---
    UNEXPECTED_ARGUMENT  = 11121
    MISSING_ARGUMENT     = 11122

    # --- binding errors (1113x) ---
    INVALID_VALUE        = 11131
    INVALID_CHOICE       = 11132

    # --- handler errors (1114x) ---
    HANDLER_FAILURE      = 11141

    def normalize(self):
        """
        label of this code as the host application wants it displayed.

        a __codes__ mapping ({FaultCode: label}) in __main__ overrides the numeric
        id; without one the number is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class CommandException(Exception):
    """
    Base class of every invocation fault.

    Options commonly carried
    - code: FaultCode of the fault (defaults to the class level __code__).
    - argument: the ArgumentInfo concerned, when there is one.
    - token: the offending command-line token, when there is one.
    - hint: a short follow-up suggestion, rendered after the message.
    - colorful: render with styles (set by the pipeline from the settings).
    """
    __code__ = Unset

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType({"code": type(self).__code__} | options)

    def __str__(self):
        return str(self.message)

    def __rich__(self):
        styles = defaultdict(str, STYLES | getattr(__import__("__main__"), "__styles__", {}))
        colorful = self.options.get("colorful", False)

        message = Text(str(self.message), styles["message"] if colorful else "")
        if colorful and (token := self.options.get("token")):
            message.highlight_words([f"'{token}'"], styles["token"])

        if not (hint := self.options.get("hint")):
            return message
        return Group(message, Text.assemble(
            Text(" → ", styles["hint-arrow"] if colorful else ""),
            Text(hint, styles["hint"] if colorful else ""),
        ))

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class UnrecognizedOptionError(CommandException):
    __code__ = FaultCode.UNRECOGNIZED_OPTION


class UnexpectedArgumentError(CommandException):
    __code__ = FaultCode.UNEXPECTED_ARGUMENT


class DuplicateOptionError(CommandException):
    __code__ = FaultCode.DUPLICATE_OPTION


class MissingArgumentError(CommandException):
    __code__ = FaultCode.MISSING_ARGUMENT


class ValueConversionError(CommandException):
    __code__ = FaultCode.INVALID_VALUE


class InvalidChoiceError(ValueConversionError):
    __code__ = FaultCode.INVALID_CHOICE


class HandlerFailure(CommandException):
    __code__ = FaultCode.HANDLER_FAILURE


class CommandExit(ExceptionGroup[CommandException]):
    """
    Aggregate of every fault found during one invocation.

    Rendering prints the faults one per line, in collection order.
    """
    def __new__(cls, exceptions, **options):
        return super().__new__(cls, "bad exit", tuple(exceptions))

    def __init__(self, exceptions, **options):
        super().__init__("bad exit", tuple(exceptions))
        self.options = MappingProxyType(options)

    def __rich__(self):
        return Group(*(exception.__replace__(**self.options) for exception in self.exceptions))

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.exceptions, **{**self.options, **overrides})

    def derive(self, exceptions):
        return type(self)(exceptions, **self.options)


__all__ = (
    "ConfigurationError",
    "CommandException",
    "UnrecognizedOptionError",
    "UnexpectedArgumentError",
    "DuplicateOptionError",
    "MissingArgumentError",
    "ValueConversionError",
    "InvalidChoiceError",
    "HandlerFailure",
    "CommandExit",
    "FaultCode",
)
