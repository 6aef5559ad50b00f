"""
Helmsman command invoker: bind parsed values and call handlers.

bind()
- Converts every collected literal with the argument's converter. Failures become
  ValueConversionError ("Invalid value '<literal>' for '<name>': <reason>"); converted
  values outside the allowed set become InvalidChoiceError.
- Fills arguments without tokens with their fallback (declared default, False for
  flags, [] for list arity, None otherwise).
- Collects faults instead of raising them.

invoke()
- Builds the object graph from the root to the command's owner: each container class
  is instantiated with its constructor options and assigned to the attribute of its
  parent instance that declared it.
- Calls the handler (or the container's default handler) with the bound values;
  awaitables are run to completion with asyncio.run.
- Maps the result to an exit code: None -> 0, int -> that code, anything else
  (bool included) -> 0.
- Exceptions raised by constructors or handlers become HandlerFailure.
"""
import asyncio
import inspect
import logging
from types import MethodType

from .arguments import Arity
from .context import Context
from .faults import HandlerFailure, InvalidChoiceError, ValueConversionError
from .utils import *

logger = logging.getLogger(__name__)


class Binding(metaclass=Introspective):
    """
    Converted values of one invocation.

    - command: the CommandDescriptor to run.
    - arguments: ArgumentInfo -> converted value, for every argument usable by the
      command (own arguments and inherited constructor options).
    - faults: conversion faults, in argument order.
    - context: the invocation Context (handed to Context-annotated parameters).
    """
    __introspectable__ = (
        "command",
        "arguments",
        "faults",
        "context",
    )
    __displayable__ = (
        "arguments",
        "faults",
    )

    def __init__(self, command, arguments, faults, context):
        self._command = command
        self._arguments = arguments
        self._faults = faults
        self._context = context

    def __getitem__(self, argument):
        return self._arguments[argument]


def _convert(argument, literal):
    try:
        value = argument.converter(literal)
    except ValueError as error:
        raise ValueConversionError(
            f"Invalid value '{literal}' for '{argument.name}': {error}",
            argument=argument,
            token=literal,
        ) from None

    if argument.choices and value not in argument.choices and literal not in argument.choices:
        raise InvalidChoiceError(
            f"Invalid value '{literal}' for '{argument.name}': expected one of {', '.join(map(str, argument.choices))}",
            argument=argument,
            token=literal,
        )
    return value


def bind(command, values, context=None, /):
    """
    Convert the raw values collected for command.

    Parameters
    - command: the resolved CommandDescriptor.
    - values: the ArgumentValues produced by parse().
    - context: the invocation Context (may be None outside of a pipeline).

    Returns
    - Binding; conversion faults are listed in Binding.faults, never raised.
    """
    arguments, faults = {}, []

    for argument in command.arguments:
        literals = values[argument] if argument in values else []
        if not literals:
            fallback = argument.fallback
            arguments[argument] = argument.collection(fallback) if argument.arity is Arity.LIST and fallback is not None else fallback
            continue

        try:
            if argument.arity is Arity.LIST:
                converted = []
                for literal in literals:
                    try:
                        converted.append(_convert(argument, literal))
                    except ValueConversionError as fault:
                        faults.append(fault)
                arguments[argument] = argument.collection(converted)
            else:
                arguments[argument] = _convert(argument, literals[-1])
        except ValueConversionError as fault:
            faults.append(fault)

    return Binding(command, arguments, faults, context)


def _call(parameters, binding):
    args, kwargs = [], {}
    for keyword, positional, target in parameters:
        value = binding.context if target is Context else binding[target]
        if positional:
            args.append(value)
        else:
            kwargs[keyword] = value
    return args, kwargs


def _graph(binding):
    """
    Instantiate every container from the root to the command and return the
    instance owning the handler (None for plain-function commands).
    """
    instance = None
    for descriptor in binding.command.path:
        if descriptor.owner is None or (descriptor.handler is not None and descriptor.parent is not None):
            continue
        args, kwargs = _call(descriptor.initializer, binding)
        child = descriptor.owner(*args, **kwargs)
        if instance is not None:
            setattr(instance, descriptor.attribute, child)
        instance = child
    return instance


async def _wait(awaitable):
    return await awaitable


def invoke(binding, /):
    """
    Run the handler of a bound command and return its exit code.

    Raises
    - HandlerFailure: a constructor or the handler raised an exception.
    """
    command = binding.command
    try:
        instance = _graph(binding)
        if command.handler is not None:
            handler = command.handler if instance is None else MethodType(command.handler, instance)
            args, kwargs = _call(command.parameters, binding)
        else:
            handler = MethodType(command.default, instance)
            args, kwargs = (), {}

        logger.debug("invoking %r", handler)
        result = handler(*args, **kwargs)
        if inspect.isawaitable(result):
            result = asyncio.run(_wait(result))
    except Exception as error:
        logger.debug("command %r failed", command.name, exc_info=True)
        raise HandlerFailure(str(error) or type(error).__name__, error=error) from error

    if result is None:
        return 0
    if isinstance(result, int) and not isinstance(result, bool):
        return int(result)
    return 0


__all__ = (
    "Binding",
    "bind",
    "invoke",
)
