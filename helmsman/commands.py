"""
Helmsman command layer: declare, build and resolve command trees.

What this module provides
- Declarations
  • @command(...): metadata for a class (command container) or a method (leaf command).
    Usable bare (@command) or with keywords (@command(name="ls", descr="...")).
  • @default: marks the parameterless method invoked when no sub-command is given.
  • subcommand(cls): nests a container class, either as a nested class decorator or
    as a class attribute (second = subcommand(Second)). On invocation the child
    instance is assigned to that attribute of the parent instance.

- Build
  • build(declaration, settings): inspect a class (or a plain function) and produce
    a read-only tree of CommandDescriptor objects. Malformed declarations raise
    ConfigurationError and no partial tree is returned.
  • CommandTree: the built tree plus resolve(tokens) which walks from the root while
    the next token names a child command.

Core ideas
- Signature-driven surface: method parameters define operands and options; the
  container's constructor parameters define options inherited by every command
  below it.
- Declaration order is preserved everywhere it is visible (arguments, children).

Quick start
    from helmsman import command, default, subcommand, Operand

    @command(name="git", version="1.0")
    class Git:
        def __init__(self, verbose=False): ...

        def status(self, short=False): ...

        @subcommand
        class Remote:
            @default
            def list(self): ...

            def add(self, name=Operand(), url=Operand()): ...
"""
import functools
import inspect
import logging
import os
import sys
import types

from rich.text import Text

from .arguments import Arity, OperandInfo, Scope, classify
from .context import Context
from .converters import Converters
from .faults import ConfigurationError
from .settings import Settings
from .utils import *

logger = logging.getLogger(__name__)

HELP_ALIASES = ("-h", "-?", "--help")
VERSION_ALIASES = ("-v", "--version")

METADATA = "__helmsman__"
DEFAULT = "__helmsman_default__"


def _process_strings(cls, metadata):
    """
    Normalize scalar string/Text metadata fields.

    - Validates type: each value must be str | Text | Unset (name and version: str only).
    - Trims strings; empty strings are rejected; names cannot contain whitespace.
    - Resolves Unset to None.
    """
    for name in ("name", "descr", "extended", "syntax", "version"):
        accepted = str | Unset if name in ("name", "version") else str | Text | Unset
        if not isinstance(object := metadata[name], accepted):
            raise TypeError(f"{cls.__typename__} {name!r} must be a string")
        elif isinstance(object, str) and not (object := object.strip()):
            raise ValueError(f"{cls.__typename__} {name!r} cannot be empty")
        metadata[name] = coalesce(object)

    if metadata["name"] is not None and len(metadata["name"].split()) != 1:
        raise ValueError(f"{cls.__typename__} 'name' cannot contain whitespaces")
    metadata["hidden"] = bool(metadata["hidden"])


class CommandMetadata(metaclass=Introspective):
    """
    Metadata attached by @command to a class or a function.

    - name: command name (defaults to the declared __name__; the root defaults to the
      executable name).
    - descr: short description shown above the usage line.
    - extended: extended help shown after everything else.
    - syntax: replaces the synthesized usage line.
    - version: version string reported by -v/--version (root only).
    - hidden: do not list the command in help.
    """
    __introspectable__ = (
        "name",
        "descr",
        "extended",
        "syntax",
        "version",
        "hidden",
    )

    def __init__(self, *, name=Unset, descr=Unset, extended=Unset, syntax=Unset, version=Unset, hidden=False):
        metadata = {
            "name": name,
            "descr": descr,
            "extended": extended,
            "syntax": syntax,
            "version": version,
            "hidden": hidden,
        }
        _process_strings(__class__, metadata)

        for name, object in metadata.items():
            setattr(self, "_" + name, object)


def command(source=Unset, /, **metadata):
    """
    Attach command metadata to a class or a function, or return a decorator that will.

    Invocation modes
    - Bare decorator:
        @command
        class Tool: ...
    - Decorator with metadata:
        @command(name="tool", descr="Does things", version="1.0")
        class Tool: ...

    Returns the decorated object itself.
    """
    attached = CommandMetadata(**metadata)

    @rename("command")
    def wrapper(source, /):
        if not callable(source):
            raise TypeError("@command() must be applied to a class or a callable")
        if METADATA in getattr(source, "__dict__", {}):
            raise TypeError("@command() must be applied only once")
        setattr(source, METADATA, attached)
        return source

    return wrapper(source) if source is not Unset else wrapper


def default(function, /):
    """
    Mark the method invoked when a container receives no sub-command token.

    The method must take no parameter besides self; it is not listed as a command.
    """
    if not isinstance(function, types.FunctionType):
        raise TypeError("@default must be applied to a function")
    setattr(function, DEFAULT, True)
    return function


class Subcommand:
    """
    Class attribute marking a nested command container.

    Accessed on the class it yields the container class; accessed on an instance it
    yields the child instance once the invoker assigned it (the class before that).
    """

    def __init__(self, cls, /):
        if not isinstance(cls, type):
            raise TypeError("subcommand() argument must be a class")
        self.type = cls
        self.attribute = Unset

    def __set_name__(self, owner, name):
        self.attribute = name

    def __get__(self, instance, owner=None):
        return self.type

    def __repr__(self):
        return f"subcommand({self.type.__qualname__})"


def subcommand(cls, /):
    """
    Declare cls as a sub-command container of the enclosing class.

    Forms
    - nested class decorator:
        @subcommand
        class Remote: ...
    - class attribute (the attribute receives the child instance on invocation):
        remote = subcommand(Remote)
    """
    return Subcommand(cls)


def _metadata(source):
    return getattr(source, "__dict__", {}).get(METADATA) or CommandMetadata()


def _signature(callable, /, *, skip):
    try:
        signature = inspect.signature(callable, eval_str=True)
    except (NameError, SyntaxError) as error:
        raise ConfigurationError(f"cannot evaluate annotations of {callable.__qualname__!r}: {error}") from error
    return list(signature.parameters.values())[skip:]


def _is_context(parameter):
    return isinstance(parameter.annotation, type) and issubclass(parameter.annotation, Context)


class CommandDescriptor(metaclass=Introspective):
    """
    Build-time description of one command (container, leaf method or plain function).

    Structure
    - operands: ordered OperandInfo tuple (leaf commands only).
    - options: own options first, then the constructor options inherited from each
      enclosing container (nearest first).
    - constructor: the options declared by this container's own constructor.
    - children: leaf methods in declaration order, then sub-command containers.
    - handler: the function to call (None for containers); default: the @default
      method of a container (None when there is none).
    - owner: the declaring class (None for a plain function); attribute: the parent
      attribute receiving the container instance (None for leaves and the root).
    - parameters / initializer: ordered (keyword, positional, ArgumentInfo | Context)
      triples describing how to call the handler / the constructor.

    Descriptors are read-only once build() returns.
    """
    __introspectable__ = (
        "name",
        "descr",
        "extended",
        "syntax",
        "version",
        "hidden",
        "operands",
        "options",
        "constructor",
        "children",
        "handler",
        "default",
        "parent",
        "owner",
        "attribute",
        "parameters",
        "initializer",
    )
    __displayable__ = (
        "name",
        "operands",
        "options",
        "children",
    )

    def __init__(self, metadata, /, *, name, parent=None, owner=None, attribute=None, handler=None):
        self._name = name
        self._descr = metadata.descr
        self._extended = metadata.extended
        self._syntax = metadata.syntax
        self._version = metadata.version
        self._hidden = metadata.hidden
        self._parent = parent
        self._owner = owner
        self._attribute = attribute
        self._handler = handler
        self._default = None
        self._operands = []
        self._options = []
        self._constructor = []
        self._children = []
        self._parameters = []
        self._initializer = []
        self._index = {}
        self._aliases = {}

    @property
    def root(self):
        """Topmost command of the tree."""
        command = self
        while command.parent is not None:
            command = command.parent
        return command

    @property
    def path(self):
        """Ancestry from the root to this command, as a tuple of descriptors."""
        path = [command := self]
        while command.parent is not None:
            path.append(command := command.parent)
        return tuple(reversed(path))

    @property
    def aliases(self):
        """Alias -> OptionInfo lookup for every option usable by this command."""
        return dict(self._aliases)

    @property
    def arguments(self):
        return (*self._operands, *self._options)

    @property
    def executable(self):
        """True when invoking this command runs a handler or a default handler."""
        return self._handler is not None or self._default is not None

    def child(self, name, /):
        """Return the child command named name (case-sensitive) or None."""
        return self._index.get(name)

    def walk(self):
        """Yield this command and all its descendants, depth-first, in child order."""
        yield self
        for child in self._children:
            yield from child.walk()

    def _adopt(self, argument):
        argument._owner = self
        if isinstance(argument, OperandInfo):
            self._operands.append(argument)
        else:
            self._options.append(argument)
        return argument

    def _attach(self, child):
        if child.name in self._index:
            raise ConfigurationError(f"command {self.name!r} has two sub-commands named {child.name!r}")
        self._index[child.name] = child
        self._children.append(child)


class _Builder:
    """
    Recursive descriptor builder.

    One instance builds one tree; it carries the settings and the converter registry.
    """

    def __init__(self, settings):
        self.settings = settings
        self.converters = Converters(settings.converters)

    def root(self, declaration):
        metadata = _metadata(declaration)
        name = metadata.name or os.path.basename(sys.argv[0]) or getattr(declaration, "__name__", "app")

        if isinstance(declaration, type):
            root = self.container(declaration, metadata, name=name)
        elif isinstance(declaration, types.FunctionType | functools.partial | types.MethodType):
            root = CommandDescriptor(metadata, name=name, handler=declaration)
            self.parameters(root, declaration, skip=0)
            self.seal(root, ())
        else:
            raise ConfigurationError(f"cannot build a command from {declaration!r}")
        return root

    def container(self, cls, metadata, /, *, name, parent=None, attribute=None):
        descriptor = CommandDescriptor(metadata, name=name, parent=parent, owner=cls, attribute=attribute)

        if cls.__init__ is not object.__init__:
            for parameter in _signature(cls.__init__, skip=1):
                positional = parameter.kind is inspect.Parameter.POSITIONAL_ONLY
                if _is_context(parameter):
                    descriptor._initializer.append((parameter.name, positional, Context))
                    continue
                argument = classify(parameter, scope=Scope.CONSTRUCTOR, converters=self.converters)
                descriptor._adopt(argument)
                descriptor._constructor.append(argument)
                descriptor._initializer.append((parameter.name, positional, argument))

        inherited = self.inherited(parent)
        self.seal(descriptor, inherited)

        leaves, containers = [], []
        for member, declared in self.members(cls):
            if isinstance(declared, Subcommand):
                containers.append((member, declared))
            elif getattr(declared, DEFAULT, False):
                if descriptor._default is not None:
                    raise ConfigurationError(f"command {name!r} declares two default handlers")
                if _signature(declared, skip=1):
                    raise ConfigurationError(f"default handler {declared.__qualname__!r} cannot declare parameters")
                descriptor._default = declared
            elif not member.startswith("_"):
                leaves.append(declared)

        for function in leaves:
            submetadata = _metadata(function)
            leaf = CommandDescriptor(submetadata, name=submetadata.name or function.__name__, parent=descriptor, owner=cls, handler=function)
            self.parameters(leaf, function, skip=1)
            self.seal(leaf, (*descriptor._constructor, *inherited))
            descriptor._attach(leaf)

        for member, declared in containers:
            submetadata = _metadata(declared.type)
            descriptor._attach(self.container(
                declared.type,
                submetadata,
                name=submetadata.name or declared.type.__name__,
                parent=descriptor,
                attribute=member,
            ))

        logger.debug("built command %r (%d children)", name, len(descriptor._children))
        return descriptor

    def members(self, cls):
        """
        Yield (name, member) pairs of plain functions and Subcommand attributes in
        declaration order, base classes first, overrides keeping the base position.
        """
        names = []
        for base in reversed(cls.__mro__[:-1]):
            names.extend(name for name in vars(base) if name not in names)
        for name in names:
            declared = inspect.getattr_static(cls, name)
            if isinstance(declared, types.FunctionType | Subcommand):
                yield name, declared

    def inherited(self, parent):
        options = []
        while parent is not None:
            options.extend(parent._constructor)
            parent = parent.parent
        return options

    def parameters(self, descriptor, function, *, skip):
        for parameter in _signature(function, skip=skip):
            if _is_context(parameter):
                descriptor._parameters.append((parameter.name, parameter.kind is inspect.Parameter.POSITIONAL_ONLY, Context))
                continue
            argument = classify(parameter, scope=Scope.METHOD, converters=self.converters)
            descriptor._adopt(argument)
            descriptor._parameters.append((parameter.name, argument.positional, argument))

        for operand in descriptor._operands[:-1]:
            if operand.arity is Arity.LIST:
                raise ConfigurationError(f"list operand {operand.name!r} of {descriptor.name!r} must be the last operand")

    def seal(self, descriptor, inherited):
        """
        Finish the option list of a descriptor and index its aliases.

        Inherited constructor options are appended after the descriptor's own options.
        Built-in help aliases (and version aliases at the root when enabled) are
        reserved.
        """
        for argument in inherited:
            if argument not in descriptor._options:
                descriptor._options.append(argument)

        reserved = set(HELP_ALIASES)
        if descriptor.parent is None and self.settings.show_version_option:
            reserved.update(VERSION_ALIASES)

        for argument in descriptor._options:
            for alias in argument.aliases:
                if alias in reserved:
                    raise ConfigurationError(f"option alias {alias!r} of {descriptor.name!r} is reserved")
                if alias in descriptor._aliases:
                    raise ConfigurationError(f"command {descriptor.name!r} has two options using the alias {alias!r}")
                descriptor._aliases[alias] = argument


def build(declaration, settings=None, /):
    """
    Build the command tree of a declaration.

    Parameters
    - declaration: a class (command container) or a plain function (single command).
    - settings: Settings (defaults to Settings()).

    Returns
    - CommandDescriptor: the root of a read-only tree.

    Raises
    - ConfigurationError: malformed or inconsistent declarations.
    """
    if settings is None:
        settings = Settings()
    if not isinstance(settings, Settings):
        raise TypeError("build() second argument must be a settings")
    root = _Builder(settings).root(declaration)
    logger.debug("built command tree %r", root.name)
    return root


class CommandTree:
    """
    A built command tree.

    Built once per Application; read-only afterwards.
    """

    def __init__(self, declaration, settings=None, /):
        self.settings = settings if settings is not None else Settings()
        self.root = build(declaration, self.settings)

    def resolve(self, tokens, /):
        """
        Walk from the root while the next token equals a child name (case-sensitive).

        Returns
        - (descriptor, remaining, consumed): the resolved command, the tokens left for
          argument parsing, and the command-name tokens that were consumed.
        """
        command, tokens = self.root, list(tokens)
        consumed = []
        while tokens and (child := command.child(tokens[0])) is not None:
            command = child
            consumed.append(tokens.pop(0))
        logger.debug("resolved %r to command %r", consumed, command.name)
        return command, tokens, consumed

    def __iter__(self):
        return self.root.walk()

    def __repr__(self):
        return f"command-tree(root={self.root.name!r})"


__all__ = (
    # Declarations
    "command",
    "default",
    "subcommand",

    # Types
    "CommandMetadata",
    "CommandDescriptor",
    "CommandTree",

    # Functions
    "build",

    # Constants
    "HELP_ALIASES",
    "VERSION_ALIASES",
)
