"""
Helmsman token parser.

parse() makes a single left-to-right pass over the tokens that follow the resolved
command path, with an operand cursor:

1. "--" (argument separator, when enabled): every later token is an operand value;
   option matching stops. Surplus tokens after the separator go to remaining.
2. Recognized alias (exact, case-sensitive; "--name=value" accepted):
   • flag: records "true" (or the inline literal),
   • single arity: the next token is the value unless it is a recognized alias or
     the active separator,
   • list arity: the following tokens up to the next option-like token, the
     separator or the end.
   Help aliases set ParseResult.help; version aliases set ParseResult.version at the
   root when the version option is enabled.
3. Option-like token matching nothing: UnrecognizedOptionError (or remaining).
4. Anything else: value of the operand under the cursor; the cursor stays on a list
   operand. No operand left: UnexpectedArgumentError (or remaining).

After the pass every required argument without values records a MissingArgumentError.
Faults are collected, never raised; the pipeline reports them together.
"""
import logging

from .arguments import Arity, OptionInfo, is_alias_like
from .commands import HELP_ALIASES, VERSION_ALIASES
from .faults import (
    FaultCode,
    DuplicateOptionError,
    MissingArgumentError,
    UnexpectedArgumentError,
    UnrecognizedOptionError,
)
from .settings import Settings
from .utils import *

logger = logging.getLogger(__name__)

SEPARATOR = "--"


class ArgumentValues:
    """
    Per-invocation table of raw string values, keyed by ArgumentInfo.

    Values can be looked up by ArgumentInfo or by any alias of an option. The table
    is created by parse() and consumed once by the invoker.
    """

    def __init__(self, command, /):
        self._command = command
        self._aliases = command.aliases
        self._values = {}

    def _key(self, key):
        if isinstance(key, str):
            try:
                return self._aliases[key]
            except KeyError:
                raise KeyError(key) from None
        return key

    def get_or_add(self, argument, /):
        """Return the value list of argument, creating an empty one when absent."""
        return self._values.setdefault(self._key(argument), [])

    def __getitem__(self, key):
        return list(self._values[self._key(key)])

    def __contains__(self, key):
        try:
            return self._key(key) in self._values
        except KeyError:
            return False

    def __iter__(self):
        return iter(self._values)

    def __len__(self):
        return len(self._values)

    def items(self):
        return [(argument, list(values)) for argument, values in self._values.items()]

    def __repr__(self):
        return f"argument-values({', '.join(f'{argument.name}={values!r}' for argument, values in self._values.items())})"


class ParseResult(metaclass=Introspective):
    """
    Outcome of resolving and parsing one token sequence.

    - command: the resolved CommandDescriptor.
    - values: the ArgumentValues collected for it.
    - remaining: tokens that were not consumed (only when unexpected arguments are
      allowed or after the separator).
    - faults: parse faults, in the order they were found.
    - help / version: whether a help or version alias was given.
    - consumed: the command-name tokens consumed during resolution.
    """
    __introspectable__ = (
        "command",
        "values",
        "remaining",
        "faults",
        "help",
        "version",
        "consumed",
    )
    __displayable__ = (
        "remaining",
        "faults",
        "help",
        "version",
        "consumed",
    )

    def __init__(self, command, values, *, remaining=(), faults=(), help=False, version=False, consumed=()):
        self._command = command
        self._values = values
        self._remaining = list(remaining)
        self._faults = list(faults)
        self._help = help
        self._version = version
        self._consumed = list(consumed)


class _Parser:
    """
    State of one parse() pass.
    """

    def __init__(self, command, tokens, settings):
        self.command = command
        self.tokens = list(tokens)
        self.settings = settings
        self.aliases = command.aliases
        self.versioned = settings.show_version_option and command.parent is None
        self.values = ArgumentValues(command)
        self.operands = list(command.operands)
        self.cursor = 0
        self.index = 0
        self.separated = False
        self.remaining = []
        self.faults = []
        self.help = False
        self.version = False
        self.incomplete = set()

    def recognized(self, token):
        if token in self.aliases or token in HELP_ALIASES:
            return True
        if self.versioned and token in VERSION_ALIASES:
            return True
        alias, sep, _ = token.partition("=")
        return bool(sep) and alias in self.aliases

    def separator(self, token):
        return token == SEPARATOR and self.settings.allow_argument_separator

    def peek(self):
        return self.tokens[self.index] if self.index < len(self.tokens) else Unset

    def surplus(self, token, fault):
        if self.settings.throw_on_unexpected_argument:
            self.faults.append(fault)
        else:
            self.remaining.append(token)

    def operand(self, token):
        if self.cursor >= len(self.operands):
            return False
        operand = self.operands[self.cursor]
        self.values.get_or_add(operand).append(token)
        if operand.arity is Arity.SINGLE:
            self.cursor += 1
        return True

    def option(self, alias, argument, inline):
        if argument.arity is Arity.SINGLE and argument in self.values:
            self.faults.append(DuplicateOptionError(
                f"Option '{alias}' cannot be specified more than once",
                argument=argument,
                token=alias,
            ))

        if argument.flag:
            self.values.get_or_add(argument).append("true" if inline is Unset else inline)
            return

        collected = [] if inline is Unset else [inline]
        if argument.arity is Arity.SINGLE:
            if not collected and (token := self.peek()) is not Unset and not self.recognized(token) and not self.separator(token):
                collected.append(token)
                self.index += 1
        else:
            while (token := self.peek()) is not Unset and not is_alias_like(token) and not self.separator(token):
                collected.append(token)
                self.index += 1

        if not collected:
            self.faults.append(MissingArgumentError(
                f"Missing value for option '{alias}'",
                argument=argument,
                token=alias,
                code=FaultCode.MISSING_OPTION_VALUE,
            ))
            self.incomplete.add(argument)
            return
        values = self.values.get_or_add(argument)
        if argument.arity is Arity.SINGLE:
            values[:] = collected
        else:
            values.extend(collected)

    def run(self):
        while (token := self.peek()) is not Unset:
            self.index += 1

            if self.separated:
                if not self.operand(token):
                    self.remaining.append(token)
                continue

            if self.separator(token):
                self.separated = True
                continue

            if token in HELP_ALIASES:
                self.help = True
                continue

            if self.versioned and token in VERSION_ALIASES:
                self.version = True
                continue

            if token in self.aliases:
                self.option(token, self.aliases[token], Unset)
                continue

            if is_alias_like(token):
                alias, sep, inline = token.partition("=")
                if sep and alias in self.aliases:
                    self.option(alias, self.aliases[alias], inline)
                    continue
                self.surplus(token, UnrecognizedOptionError(f"Unrecognized option '{token}'", token=token))
                continue

            if not self.operand(token):
                self.surplus(token, UnexpectedArgumentError(f"Unrecognized command or argument '{token}'", token=token))

        for argument in self.command.arguments:
            if argument in self.incomplete:
                continue
            if argument.required and not (argument in self.values and self.values[argument]):
                if isinstance(argument, OptionInfo):
                    message, code = f"Missing required option '{argument.display}'", FaultCode.MISSING_OPTION
                else:
                    message, code = f"Missing required argument '{argument.name}'", FaultCode.MISSING_ARGUMENT
                self.faults.append(MissingArgumentError(message, argument=argument, code=code))

        return self


def parse(command, tokens, settings=None, /, *, consumed=()):
    """
    Parse the argument tokens of a resolved command.

    Parameters
    - command: the CommandDescriptor the tokens belong to.
    - tokens: the tokens following the command path.
    - settings: Settings (defaults to Settings()).
    - consumed: command-name tokens consumed while resolving, recorded on the result.

    Returns
    - ParseResult with the collected values and faults (faults are never raised).
    """
    if settings is None:
        settings = Settings()
    parser = _Parser(command, tokens, settings).run()
    logger.debug(
        "parsed %d token(s) for %r: %d fault(s), %d remaining",
        len(parser.tokens), command.name, len(parser.faults), len(parser.remaining),
    )
    return ParseResult(
        command,
        parser.values,
        remaining=parser.remaining,
        faults=parser.faults,
        help=parser.help,
        version=parser.version,
        consumed=consumed,
    )


__all__ = (
    "ArgumentValues",
    "ParseResult",
    "parse",
)
