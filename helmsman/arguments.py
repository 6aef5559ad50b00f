r"""
Helmsman argument declarations and classification.

Overview
- Markers (used as parameter defaults)
  • Operand(...): positional, value-bearing argument addressed by position.
  • Option(*names, ...): named, value-bearing option with one or more aliases
    (e.g., -o/--output). Boolean options are flags (presence means True).
  A parameter with a plain default (or none at all) is an option whose alias is
  derived from its name.

- Argument infos (produced by classify(), owned by a CommandDescriptor)
  • OperandInfo: addressed by position in declaration order.
  • OptionInfo: addressed by alias token, in any order.
  Both expose name, aliases, type, typename, converter, required, default, choices,
  arity, descr, hidden, scope and owner as read-only properties.

Metadata (sanitized on construction)
- type: Unset | type | generic alias (list[int], int | None, ...).
- default: any value; Unset when the parameter has no default.
- required: Unset | bool (derived when Unset).
- choices: Iterable (duplicates rejected unless a Set).
- descr: Unset | str | Text (short help), non-empty when provided.
- hidden: bool (suppresses from help only).
- names (Option only): Iterable[str] matching r"--?[^\W\d_](-?[^\W_]+)*", no duplicates.

Type resolution (first match wins)
- the marker's type=, the annotation, the type of a non-None default, then str.
- list[T] / tuple[T, ...] / set[T] / frozenset[T]: list arity with element type T.
- T | None / Optional[T]: element type T, not required.

Quick example:
    >>> class Tool:
    ...     def copy(self, source=Operand(descr="file to copy"), force=False,
    ...              output=Option("-o", "--output", type=Path)): ...
"""
import inspect
import re
import types
import typing
from collections.abc import Iterable, Set
from enum import StrEnum

from rich.text import Text

from .faults import ConfigurationError
from .utils import *

ALIAS = re.compile(r"--?[^\W\d_](-?[^\W_]+)*")
NEGATIVE = re.compile(r"-\d+(\.\d*)?([eE][-+]?\d+)?|-\.\d+([eE][-+]?\d+)?")

COLLECTIONS = (list, tuple, set, frozenset)


class Arity(StrEnum):
    SINGLE = "single"
    LIST = "list"


class Scope(StrEnum):
    CONSTRUCTOR = "constructor"
    METHOD = "method"


def is_alias_like(token, /):
    """
    Return True when a token looks like an option: it starts with '-', is longer than
    one character and is not a negative number literal ("-1", "-2.5", "-1e3").
    """
    return isinstance(token, str) and len(token) > 1 and token.startswith("-") and not NEGATIVE.fullmatch(token)


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: normalize and validate the metadata shared by Operand and Option.

    - required: Unset or bool.
    - choices: iterable; duplicates rejected unless a Set, normalized to a tuple.
    - descr: Unset | str | Text; trimmed strings must be non-empty. Unset becomes None.
    - hidden: coerced to bool.

    Raises
    - TypeError: when a field has the wrong type.
    - ValueError: when descr is empty or choices contain duplicates.
    """
    if not isinstance(metadata["required"], bool | Unset):
        raise TypeError(f"{cls.__typename__} 'required' must be a boolean")

    if not isinstance(choices := metadata["choices"], Iterable) or isinstance(choices, str):
        raise TypeError(f"{cls.__typename__} 'choices' must be a non-string iterable")
    if not isinstance(choices, Set):
        sanitized = []
        for choice in choices:
            if choice in sanitized:
                raise ValueError(f"{cls.__typename__} 'choices' cannot contain duplicates")
            sanitized.append(choice)
        choices = sanitized
    metadata["choices"] = tuple(choices)

    if not isinstance(descr := metadata["descr"], str | Text | Unset):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    elif isinstance(descr, str) and not (descr := descr.strip()):
        raise ValueError(f"{cls.__typename__} 'descr' cannot be empty")
    metadata["descr"] = coalesce(descr)

    metadata["hidden"] = bool(metadata["hidden"])


def _sanitize_named_metadata(cls, metadata, /):
    """
    Internal: validate explicit option names.

    Accepted forms: "-x", "-long", "--long", "--long-name" (unicode letters allowed,
    no underscores, no leading digits). Order is kept; duplicates are rejected.
    """
    names = []
    for name in metadata["names"]:
        if not isinstance(name, str):
            raise TypeError(f"{cls.__typename__} names must be strings")
        elif not (name := name.strip()):
            raise ValueError(f"{cls.__typename__} names cannot be empty-strings")
        elif not ALIAS.fullmatch(name):
            raise ValueError(f"{cls.__typename__} names must be valid shell-style option names (unicodes are allowed)")
        elif name in names:
            raise ValueError(f"{cls.__typename__} names cannot contain duplicates")
        names.append(name)
    metadata["names"] = tuple(names)


class Operand(metaclass=Introspective):
    """
    Marker declaring a positional parameter.

    Operands are filled in declaration order; at most one operand per command may
    have list arity and it must be the last one.
    """
    __introspectable__ = (
        "type",
        "default",
        "required",
        "choices",
        "descr",
        "hidden",
    )

    def __init__(self, *, type=Unset, default=Unset, required=Unset, choices=(), descr=Unset, hidden=False):
        metadata = {
            "type": type,
            "default": default,
            "required": required,
            "choices": choices,
            "descr": descr,
            "hidden": hidden,
        }
        _sanitize_metadata(__class__, metadata)

        for name, object in metadata.items():
            setattr(self, "_" + name, object)


class Option(metaclass=Introspective):
    """
    Marker declaring a named option with explicit aliases.

    Without names the alias is derived from the parameter name, as for plain
    parameters.
    """
    __introspectable__ = (
        "names",
        "type",
        "default",
        "required",
        "choices",
        "descr",
        "hidden",
    )

    def __init__(self, *names, type=Unset, default=Unset, required=Unset, choices=(), descr=Unset, hidden=False):
        metadata = {
            "names": names,
            "type": type,
            "default": default,
            "required": required,
            "choices": choices,
            "descr": descr,
            "hidden": hidden,
        }
        _sanitize_metadata(__class__, metadata)
        _sanitize_named_metadata(__class__, metadata)

        for name, object in metadata.items():
            setattr(self, "_" + name, object)


class ArgumentInfo(metaclass=Introspective):
    """
    Build-time description of one command argument.

    Instances are created by classify() and adopted by a CommandDescriptor which
    sets the owner back-reference. They are read-only afterwards and serve as keys
    of the per-invocation ArgumentValues table (identity hashing).
    """
    __introspectable__ = (
        "name",
        "aliases",
        "type",
        "typename",
        "converter",
        "required",
        "default",
        "choices",
        "arity",
        "collection",
        "descr",
        "hidden",
        "scope",
        "owner",
        "keyword",
        "positional",
    )
    __displayable__ = (
        "name",
        "aliases",
        "typename",
        "required",
        "arity",
        "scope",
    )

    def __init__(self, **metadata):
        for name in self.__introspectable__:
            setattr(self, "_" + name, metadata.get(name, Unset))
        self._owner = None

    def __hash__(self):
        return id(self)

    def __eq__(self, other):
        return self is other

    @property
    def flag(self):
        return False

    @property
    def fallback(self):
        """
        Value bound when no token was supplied for this argument.

        The declared default when there is one, else False for flags, an empty list
        for list arity and None otherwise.
        """
        if self._default is not Unset:
            return self._default
        if self.flag:
            return False
        if self._arity is Arity.LIST:
            return []
        return None


class OptionInfo(ArgumentInfo):
    @property
    def flag(self):
        return self._type is bool and self._arity is Arity.SINGLE

    @property
    def display(self):
        """Longest alias, used in fault messages ('--output' rather than '-o')."""
        return max(self._aliases, key=len)


class OperandInfo(ArgumentInfo):
    pass


def derive_alias(name, /):
    """
    Derive the option alias of a plain parameter name.

    - one-letter names become short aliases: "x" -> "-x"
    - longer names become long aliases, underscores replaced by hyphens, case kept:
      "dry_run" -> "--dry-run", "Opt1" -> "--Opt1"
    """
    alias = f"-{name}" if len(name) == 1 else "--" + name.replace("_", "-")
    if not ALIAS.fullmatch(alias):
        raise ConfigurationError(f"parameter {name!r} cannot be turned into an option alias ({alias!r})")
    return alias


def _resolve_type(annotation, /):
    """
    Unwrap an annotation into (element type, arity, optional, collection).

    - T | None / Optional[T]  -> (T, ..., True, ...)
    - list[T], set[T], frozenset[T], tuple[T, ...] -> (T, LIST, ..., origin)
    - bare list / tuple / set -> (str, LIST, ..., type)
    """
    optional = False
    origin = typing.get_origin(annotation)

    if origin in (typing.Union, types.UnionType):
        members = [member for member in typing.get_args(annotation) if member is not type(None)]
        optional = len(members) < len(typing.get_args(annotation))
        if len(members) != 1:
            raise ConfigurationError(f"union types are not supported ({annotation!r})")
        annotation = members[0]
        origin = typing.get_origin(annotation)

    if annotation in COLLECTIONS:
        return str, Arity.LIST, optional, annotation

    if origin in COLLECTIONS:
        match typing.get_args(annotation):
            case (element,) if origin is not tuple:
                return element, Arity.LIST, optional, origin
            case (element, tail) if origin is tuple and tail is Ellipsis:
                return element, Arity.LIST, optional, origin
            case _:
                raise ConfigurationError(f"collection type {annotation!r} must have a single element type")

    return annotation, Arity.SINGLE, optional, None


def classify(parameter, /, *, scope, converters):
    """
    Turn an inspect.Parameter into an OptionInfo or an OperandInfo.

    Parameters
    - parameter: the inspect.Parameter (annotations already evaluated).
    - scope: Scope.CONSTRUCTOR or Scope.METHOD.
    - converters: the Converters registry used to validate the element type.

    Raises
    - ConfigurationError: variadic parameters, operand markers on constructor
      parameters, unsupported or unknown types, list arity flags.
    """
    if parameter.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
        raise ConfigurationError(f"variadic parameter {parameter.name!r} is not supported")

    marker = parameter.default if isinstance(parameter.default, Operand | Option) else Unset
    default = parameter.default if marker is Unset and parameter.default is not inspect.Parameter.empty else Unset
    if marker is not Unset:
        default = marker.default

    if isinstance(marker, Operand) and scope is Scope.CONSTRUCTOR:
        raise ConfigurationError(f"constructor parameter {parameter.name!r} cannot be an operand")

    if marker is not Unset and marker.type is not Unset:
        annotation = marker.type
    elif parameter.annotation is not inspect.Parameter.empty:
        annotation = parameter.annotation
    elif default is not Unset and default is not None:
        annotation = type(default)
    else:
        annotation = str

    element, arity, optional, collection = _resolve_type(annotation)

    try:
        converter = converters.resolve(element)
    except KeyError:
        raise ConfigurationError(f"parameter {parameter.name!r} has an unsupported type {element!r}") from None

    if isinstance(marker, Operand):
        factory = OperandInfo
        aliases = ()
    else:
        factory = OptionInfo
        aliases = marker.names if isinstance(marker, Option) and marker.names else (derive_alias(parameter.name),)
        if element is bool and arity is Arity.LIST:
            raise ConfigurationError(f"flag {parameter.name!r} cannot have list arity")

    flag = factory is OptionInfo and element is bool
    if marker is not Unset and marker.required is not Unset:
        required = marker.required
    else:
        required = default is Unset and not optional and not flag
    if flag and required:
        raise ConfigurationError(f"flag {parameter.name!r} cannot be required")

    return factory(
        name=parameter.name,
        aliases=aliases,
        type=element,
        typename=converter.typename,
        converter=converter.parse,
        required=required,
        default=default,
        choices=marker.choices if marker is not Unset else (),
        arity=arity,
        collection=collection,
        descr=marker.descr if marker is not Unset else None,
        hidden=marker.hidden if marker is not Unset else False,
        scope=scope,
        keyword=parameter.name,
        positional=parameter.kind is inspect.Parameter.POSITIONAL_ONLY,
    )


__all__ = (
    # Markers
    "Operand",
    "Option",

    # Infos
    "ArgumentInfo",
    "OptionInfo",
    "OperandInfo",

    # Enumerations
    "Arity",
    "Scope",

    # Functions
    "classify",
    "derive_alias",
    "is_alias_like",
)
