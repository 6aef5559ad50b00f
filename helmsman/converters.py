"""
Type registry: declared parameter types -> string parsers.

Each entry pairs a parse(str) -> value function with the display name help shows
between angle brackets (<TEXT>, <NUMBER>, ...). Parsers raise ValueError with a short
reason; the invoker turns it into a ValueConversionError naming the argument and the
literal.

Built-in entries
- str -> TEXT, int -> NUMBER, float -> DECIMAL, decimal.Decimal -> DECIMAL
- bool -> BOOLEAN (true/false, yes/no, on/off, 1/0; case-insensitive)
- pathlib.Path -> PATH
- Enum subclasses: matched by member name first, then by member value.
"""
import decimal
import pathlib
from enum import Enum
from types import MappingProxyType
from typing import NamedTuple

from .utils import rename


class Converter(NamedTuple):
    parse: object
    typename: str


TRUTHY = frozenset({"true", "yes", "on", "1"})
FALSY = frozenset({"false", "no", "off", "0"})


def _text(value):
    return value


def _number(value):
    try:
        return int(value)
    except ValueError:
        raise ValueError("expected a whole number") from None


def _float(value):
    try:
        return float(value)
    except ValueError:
        raise ValueError("expected a decimal number") from None


def _decimal(value):
    try:
        return decimal.Decimal(value)
    except decimal.InvalidOperation:
        raise ValueError("expected a decimal number") from None


def _boolean(value):
    match value.lower():
        case lowered if lowered in TRUTHY:
            return True
        case lowered if lowered in FALSY:
            return False
        case _:
            raise ValueError(f"expected one of {', '.join(sorted(TRUTHY | FALSY))}")


def _path(value):
    if not value:
        raise ValueError("expected a non-empty path")
    return pathlib.Path(value)


def _enumeration(kind):
    @rename(f"parse_{kind.__name__.lower()}")
    def parse(value):
        if value in kind.__members__:
            return kind[value]
        for member in kind:
            if str(member.value) == value:
                return member
        raise ValueError(f"expected one of {', '.join(member.name for member in kind)}")

    return parse


BUILTINS = MappingProxyType({
    str: Converter(_text, "TEXT"),
    int: Converter(_number, "NUMBER"),
    float: Converter(_float, "DECIMAL"),
    decimal.Decimal: Converter(_decimal, "DECIMAL"),
    bool: Converter(_boolean, "BOOLEAN"),
    pathlib.Path: Converter(_path, "PATH"),
})


class Converters:
    """
    Lookup table from declared types to Converter entries.

    Extra entries (from Settings.converters) take precedence over the built-ins and may
    be given as a bare parser or as a (parser, typename) pair. A bare parser is
    displayed with the upper-cased type name.
    """

    def __init__(self, extra=None, /):
        self._table = dict(BUILTINS)
        for kind, entry in (extra or {}).items():
            if not isinstance(kind, type):
                raise TypeError("converters keys must be types")
            if callable(entry):
                entry = Converter(entry, kind.__name__.upper())
            elif isinstance(entry, tuple) and len(entry) == 2 and callable(entry[0]) and isinstance(entry[1], str):
                entry = Converter(*entry)
            else:
                raise TypeError(f"converter for {kind.__name__!r} must be a callable or a (callable, name) pair")
            self._table[kind] = entry

    def __contains__(self, kind):
        try:
            self.resolve(kind)
        except KeyError:
            return False
        return True

    def resolve(self, kind):
        """
        Return the Converter for a type.

        Lookup order: exact entry, Enum subclass, then the first registered base class
        in the type's MRO. Raises KeyError when nothing matches.
        """
        if kind in self._table:
            return self._table[kind]
        if isinstance(kind, type):
            if issubclass(kind, Enum):
                return Converter(_enumeration(kind), kind.__name__.upper())
            for base in kind.__mro__[1:-1]:
                if base in self._table:
                    return self._table[base]
        raise KeyError(kind)


__all__ = (
    "Converter",
    "Converters",
)
