"""
Help and version rendering.

Help layout (sections only appear when they have visible entries)

    <descr>

    Usage: <app> <path...> [arguments] [options] [command]

    Arguments:

      ...

    Options:

      ...

    Commands:

      Do1
      Second

    Use "<app> <path...> [command] --help" for more information about a command.

    <extended>

- The help option itself is never listed; the version option is listed at the root
  when enabled.
- HelpVerbosity.BASIC lays out "name  description" on one line.
- HelpVerbosity.DETAILED puts the description under the padded name and shows the
  value type (<TEXT>), list arity (Multiple), defaults and allowed values.

Version text is "<app>" newline "<version>".
"""
import importlib.metadata
import sys
from collections import defaultdict

from rich.text import Text

from .arguments import Arity, OptionInfo
from .commands import VERSION_ALIASES
from .settings import HelpVerbosity
from .utils import Unset

STYLES = {
    "usage": "bold #E6E6F0",  # near-white usage line
    "section": "bold #00E5FF",  # neon cyan section titles
    "name": "#9CE19C",  # gentle green entry names
    "typename": "dim",
    "descr": "#C8C8D0",  # soft light gray descriptions
}

VERSION_DESCR = "Show version information"

# Detailed entries pad their header this far past the widest header of the section.
DETAILED_PADDING = 10


def _styles(colorful):
    styles = defaultdict(str, STYLES | getattr(__import__("__main__"), "__styles__", {}))
    return styles if colorful else defaultdict(str)


def _header(argument):
    if isinstance(argument, OptionInfo):
        return " | ".join(argument.aliases)
    return argument.name


def _details(argument):
    if isinstance(argument, OptionInfo) and argument.flag:
        return ""
    details = f"<{argument.typename}>"
    if argument.arity is Arity.LIST:
        details += " (Multiple)"
    default = argument.default
    if default is Unset or default is None or argument.arity is Arity.LIST and not default:
        return details
    if argument.arity is Arity.LIST:
        default = ", ".join(map(str, default))
    return details + f" [{default}]"


def _entries(command, settings):
    """
    Yield (section, header, details, descr, choices) for every visible argument.
    """
    for argument in command.operands:
        if not argument.hidden:
            yield "Arguments", _header(argument), _details(argument), argument.descr, argument.choices

    for argument in command.options:
        if not argument.hidden:
            yield "Options", _header(argument), _details(argument), argument.descr, argument.choices

    if command.parent is None and settings.show_version_option:
        yield "Options", " | ".join(VERSION_ALIASES), "", VERSION_DESCR, ()


def _route(command):
    return " ".join(descriptor.name for descriptor in command.path)


def render_help(command, settings, /):
    """
    Render the help of command as a rich Text (no trailing newline).
    """
    styles = _styles(settings.colorful)
    detailed = settings.help_verbosity is HelpVerbosity.DETAILED
    children = [child for child in command.children if not child.hidden]

    sections = {"Arguments": [], "Options": []}
    for section, header, details, descr, choices in _entries(command, settings):
        sections[section].append((header, details, descr, choices))

    route = _route(command)
    blocks = []

    if command.descr:
        blocks.append(Text(str(command.descr), styles["descr"]) if isinstance(command.descr, str) else command.descr)

    if command.syntax:
        usage = command.syntax
    else:
        usage = route
        if sections["Arguments"]:
            usage += " [arguments]"
        if sections["Options"]:
            usage += " [options]"
        if children:
            usage += " [command]"
    blocks.append(Text.assemble(Text("Usage: ", styles["usage"]), Text(usage, styles["usage"])))

    for title, entries in sections.items():
        if not entries:
            continue
        block = Text()
        block.append(f"{title}:", styles["section"])
        block.append("\n")
        if detailed:
            width = max(len(f"{header}  {details}".rstrip()) for header, details, _, _ in entries) + DETAILED_PADDING
            for header, details, descr, choices in entries:
                block.append("\n")
                block.append("  ")
                block.append(header, styles["name"])
                if details:
                    block.append("  ")
                    block.append(details, styles["typename"])
                if descr:
                    block.append(" " * (width - len(f"{header}  {details}".rstrip())))
                    block.append("\n  ")
                    block.append(str(descr), styles["descr"])
                if choices:
                    block.append("\n  ")
                    block.append(f"Allowed values: {', '.join(map(str, choices))}", styles["descr"])
                block.append("\n")
        else:
            width = max(len(header) for header, _, _, _ in entries)
            for header, details, descr, choices in entries:
                block.append("\n  ")
                block.append(header.ljust(width) if descr else header, styles["name"])
                if descr:
                    block.append("  ")
                    block.append(str(descr), styles["descr"])
        block.rstrip()
        blocks.append(block)

    if children:
        block = Text()
        block.append("Commands:", styles["section"])
        block.append("\n")
        width = max(len(child.name) for child in children)
        for child in children:
            block.append("\n  ")
            if child.descr:
                block.append(child.name.ljust(width), styles["name"])
                block.append("  ")
                block.append(str(child.descr), styles["descr"])
            else:
                block.append(child.name, styles["name"])
        blocks.append(block)
        blocks.append(Text(f'Use "{route} [command] --help" for more information about a command.'))

    if command.extended:
        blocks.append(Text(str(command.extended)) if isinstance(command.extended, str) else command.extended)

    return Text("\n\n").join(blocks)


def resolve_version(root, /):
    """
    Version of the application: the root metadata, else the installed distribution of
    the root's top-level package, else "unknown".
    """
    if root.version:
        return root.version

    declaration = root.owner if root.owner is not None else root.handler
    package = getattr(declaration, "__module__", "").partition(".")[0]
    if not package or package == "__main__":
        package = getattr(sys.modules["__main__"], "__package__", None) or ""
    if package:
        for distribution in importlib.metadata.packages_distributions().get(package, [package]):
            try:
                return importlib.metadata.version(distribution)
            except importlib.metadata.PackageNotFoundError:
                continue
    return "unknown"


def render_version(root, settings, /):
    """
    Render "<app>" newline "<version>" as a rich Text.
    """
    styles = _styles(settings.colorful)
    return Text.assemble(Text(root.name, styles["usage"]), "\n", resolve_version(root))


__all__ = (
    "render_help",
    "render_version",
    "resolve_version",
)
