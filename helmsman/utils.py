"""
Helmsman utilities.

Small building blocks shared by the declaration, tree, parsing and pipeline layers:

- Unset: the "not provided" sentinel, distinct from None. Markers and metadata use it
  as their default so that an explicit None (a legitimate default value) survives.
- coalesce(value, default): Unset -> default, anything else unchanged.
- rename("name"): stable __name__/__qualname__ for generated functions.
- mirror("attr") / Introspective: read-only mirrored properties plus a compact repr
  for declaration objects (markers, argument infos, descriptors, settings).

    >>> coalesce(Unset, "fallback")
    'fallback'
    >>> coalesce(None, "fallback") is None
    True
"""
import functools
import operator
import re
from collections.abc import Sequence, Mapping, Set
from typing import final


@final
class UnsetType:
    """
    Type of the Unset sentinel.

    There is exactly one instance per process. It is falsy, prints as "Unset", survives
    copy and pickle as itself and can be used in isinstance unions (str | Unset).
    """
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __or__(self, other, /):
        if isinstance(other, type):
            return type(self) | other
        return NotImplemented

    def __ror__(self, other, /):
        if isinstance(other, type) or hasattr(other, "__args__"):
            return other | type(self)
        return NotImplemented

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __reduce__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")


Unset = UnsetType()
"""
Internal sentinel for “not provided”.

Use Unset as a default when None is a valid, user-meaningful value but you still
need to distinguish “no input” from “explicitly passed None”.
"""


def coalesce(object, default=None, /):
    """
    Resolve the Unset sentinel to a concrete default.

    Falsy values (None, 0, "", []) are kept as they are:

    - coalesce("name", "fallback") -> "name"
    - coalesce(Unset, "fallback")  -> "fallback"
    - coalesce(None, "fallback")   -> None
    """
    return object if object is not Unset else default


def rename(name, /):
    """
    Decorator giving a generated function a stable __name__ and __qualname__.

        @rename("parse_color")
        def parse(value): ...
    """
    if not isinstance(name, str):
        raise TypeError("rename() argument must be a string")

    def decorator(function):
        if not callable(function):
            raise TypeError("@rename() must be applied to a callable")
        function.__name__ = function.__qualname__ = name
        return function

    return decorator


def _detach(object):
    """
    Shallow-copy container values so callers never hold the internal container.

    - Sequence (non-string): tuple (order is meaningful and stays read-only).
    - Mapping: dict copy.
    - Set: frozenset.
    - Anything else: returned as-is.
    """
    if isinstance(object, Sequence) and not isinstance(object, str | tuple):
        return tuple(object)
    elif isinstance(object, Mapping):
        return dict(object)
    elif isinstance(object, Set) and not isinstance(object, frozenset):
        return frozenset(object)
    return object


def mirror(name, /):
    """
    Define a read-only property that mirrors the private backing attribute "_{name}".
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return _detach(getattr(self, "_" + name))

    return property(getter)


class Introspective(type):
    """
    Metaclass for declaration objects (markers, argument infos, descriptors, settings).

    Responsibilities
    - Expose every name listed in __introspectable__ as a read-only property backed by
      the "_<name>" attribute (see mirror()).
    - Provide a compact, stable __repr__ and a __rich_repr__ for pretty printers.

    Conventions
    - __typename__ is derived from the class name (camel-case split with hyphens) and
      used in messages, e.g. "option-info".
    - __displayable__ (if set) narrows which properties are shown by __rich_repr__;
      otherwise __introspectable__ is used.
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        if "__repr__" not in namespace:
            @rename("__repr__")
            def __repr__(self):
                return f"{type(self).__typename__}({', '.join(map(functools.partial(operator.mod, '%s=%r'), self.__rich_repr__()))})"
            self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


__all__ = (
    # Functions
    "coalesce",
    "rename",
    "mirror",

    # Types
    "UnsetType",
    "Introspective",

    # Constants
    "Unset",
)
