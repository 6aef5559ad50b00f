"""
Application settings.

A Settings instance is validated once on construction and is read-only afterwards;
every field is exposed through a mirrored property.

Fields
- allow_argument_separator: "--" ends option parsing; later tokens are operand values.
- throw_on_unexpected_argument: unknown options and surplus operands are faults (True)
  or collected in ParseResult.remaining (False).
- show_version_option: the root accepts -v/--version and lists it in help.
- help_verbosity: HelpVerbosity.BASIC or HelpVerbosity.DETAILED.
- converters: extra {type: parser} or {type: (parser, typename)} entries merged into
  the built-in converter registry.
- colorful: style help and faults with rich markup.
"""
from enum import StrEnum
from types import MappingProxyType

from .utils import Introspective


class HelpVerbosity(StrEnum):
    BASIC = "basic"
    DETAILED = "detailed"


class Settings(metaclass=Introspective):
    __introspectable__ = (
        "allow_argument_separator",
        "throw_on_unexpected_argument",
        "show_version_option",
        "help_verbosity",
        "converters",
        "colorful",
    )

    def __init__(
        self,
        *,
        allow_argument_separator=False,
        throw_on_unexpected_argument=True,
        show_version_option=False,
        help_verbosity=HelpVerbosity.DETAILED,
        converters=None,
        colorful=False,
    ):
        for name, value in {
            "allow_argument_separator": allow_argument_separator,
            "throw_on_unexpected_argument": throw_on_unexpected_argument,
            "show_version_option": show_version_option,
            "colorful": colorful,
        }.items():
            if not isinstance(value, bool):
                raise TypeError(f"settings {name!r} must be a boolean")
            setattr(self, "_" + name, value)

        try:
            self._help_verbosity = HelpVerbosity(help_verbosity)
        except ValueError:
            raise ValueError(
                f"settings 'help_verbosity' must be one of {', '.join(map(repr, HelpVerbosity))}"
            ) from None

        if converters is None:
            converters = {}
        if not isinstance(converters, dict):
            raise TypeError("settings 'converters' must be a dictionary")
        if not all(isinstance(key, type) for key in converters):
            raise TypeError("settings 'converters' keys must be types")
        self._converters = MappingProxyType(dict(converters))

    def __replace__(self, **overrides):
        return type(self)(**{name: getattr(self, name) for name in self.__introspectable__} | overrides)


__all__ = (
    "HelpVerbosity",
    "Settings",
)
