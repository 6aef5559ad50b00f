"""
Helmsman execution pipeline and entry points.

Pipeline
- An ordered chain of behaviors, each a callable behavior(context, proceed) -> int.
  A behavior either returns an exit code itself or calls proceed() to hand over to
  the next one. The first behavior that answers wins.

Default chain (outermost first)
1. translate_errors: prints CommandExit / CommandException faults on the error
   channel and maps them to exit code 1.
2. parse_tokens: resolves the command path and parses its arguments.
3. show_help: -h / -? / --help print the help of the resolved command (exit 0).
4. show_version: -v / --version at the root, when enabled (exit 0).
5. show_usage: a command with neither handler nor @default, given no argument
   token, prints its help (exit 0) before any fault is checked.
6. check_faults: binds the values and raises a CommandExit with every parse and
   conversion fault of the invocation.
7. run_default: a container without handler runs its @default method, or prints
   its help (exit 0) when it has none.
8. dispatch: invokes the handler.

Entry points
- Application(root, settings): builds the command tree once; run() may be called
  any number of times with identical results.
- run(root, settings=None, tokens=Unset, ...): one-shot convenience.
"""
import functools
import logging
import shlex
import sys
from collections.abc import Iterable

from .commands import CommandTree
from .context import Context
from .faults import CommandException, CommandExit
from .help import render_help, render_version
from .invoker import bind, invoke
from .parsing import parse
from .settings import Settings
from .utils import *

logger = logging.getLogger(__name__)


def translate_errors(context, proceed):
    try:
        return proceed()
    except (CommandExit, CommandException) as fault:
        logger.debug("invocation failed: %s", fault)
        context.errors.print(fault.__replace__(colorful=context.settings.colorful))
        return 1


def parse_tokens(context, proceed):
    command, tokens, consumed = context.application.tree.resolve(context.tokens)
    context.result = parse(command, tokens, context.settings, consumed=consumed)
    return proceed()


def show_help(context, proceed):
    if not context.result.help:
        return proceed()
    context.console.print(render_help(context.command, context.settings))
    return 0


def show_version(context, proceed):
    if not context.result.version:
        return proceed()
    context.console.print(render_version(context.command.root, context.settings))
    return 0


def show_usage(context, proceed):
    command = context.command
    if command.executable or len(context.tokens) > len(context.result.consumed):
        return proceed()
    context.console.print(render_help(command, context.settings))
    return 0


def check_faults(context, proceed):
    context.binding = bind(context.command, context.result.values, context)
    if faults := [*context.result.faults, *context.binding.faults]:
        raise CommandExit(faults)
    return proceed()


def run_default(context, proceed):
    command = context.command
    if command.handler is not None:
        return proceed()
    if command.default is None:
        context.console.print(render_help(command, context.settings))
        return 0
    return invoke(context.binding)


def dispatch(context, proceed):
    return invoke(context.binding)


BEHAVIORS = (
    translate_errors,
    parse_tokens,
    show_help,
    show_version,
    show_usage,
    check_faults,
    run_default,
    dispatch,
)


class Pipeline:
    """
    Ordered chain of behaviors.

    Calling the pipeline with a context runs the first behavior; each proceed()
    runs the next one. Falling off the end of the chain yields exit code 0.
    """

    def __init__(self, behaviors=BEHAVIORS, /):
        self._behaviors = list(behaviors)
        for behavior in self._behaviors:
            if not callable(behavior):
                raise TypeError("pipeline behaviors must be callable")

    @property
    def behaviors(self):
        return tuple(self._behaviors)

    def insert(self, index, behavior, /):
        if not callable(behavior):
            raise TypeError("pipeline behaviors must be callable")
        self._behaviors.insert(index, behavior)

    def __call__(self, context, /):
        def step(index):
            if index >= len(self._behaviors):
                return 0
            return self._behaviors[index](context, functools.partial(step, index + 1))

        return step(0)

    def __repr__(self):
        return f"pipeline({', '.join(behavior.__name__ for behavior in self._behaviors)})"


def _tokens(tokens):
    if tokens is Unset:
        return sys.argv[1:]
    if isinstance(tokens, str):
        return shlex.split(tokens)
    if not isinstance(tokens, Iterable):
        raise TypeError("tokens must be a string or an iterable of strings")
    tokens = list(tokens)
    if not all(isinstance(token, str) for token in tokens):
        raise TypeError("tokens must be a string or an iterable of strings")
    return tokens


class Application:
    """
    A runnable command-line application.

    The command tree is built once, on construction (ConfigurationError propagates);
    each run() creates a fresh Context and runs the pipeline over it.

    Usage
        app = Application(Git, Settings(show_version_option=True))
        sys.exit(app.run())
    """

    def __init__(self, root, settings=None):
        if settings is None:
            settings = Settings()
        if not isinstance(settings, Settings):
            raise TypeError("application settings must be a settings")
        self.settings = settings
        self.tree = CommandTree(root, settings)
        self.pipeline = Pipeline()

    def use(self, behavior, /):
        """
        Add a behavior right before the default-command fallback, after faults were
        checked and values bound. Returns the application for chaining.
        """
        self.pipeline.insert(self.pipeline.behaviors.index(run_default), behavior)
        return self

    def run(self, tokens=Unset, *, stdin=None, stdout=None, stderr=None):
        """
        Run the application over one token sequence and return the exit code.

        Tokens
        - Unset: sys.argv[1:]
        - str: split with shlex.split
        - Iterable[str]: used as-is
        """
        context = Context(
            self,
            _tokens(tokens),
            stdin=stdin if stdin is not None else sys.stdin,
            stdout=stdout if stdout is not None else sys.stdout,
            stderr=stderr if stderr is not None else sys.stderr,
        )
        logger.debug("running %r with %r", self.tree.root.name, context.tokens)
        return self.pipeline(context)

    def __repr__(self):
        return f"application(root={self.tree.root.name!r})"


def run(root, settings=None, tokens=Unset, *, stdin=None, stdout=None, stderr=None):
    """
    Build an Application for root and run it once.
    """
    return Application(root, settings).run(tokens, stdin=stdin, stdout=stdout, stderr=stderr)


__all__ = (
    "Application",
    "Pipeline",
    "run",
    "translate_errors",
    "parse_tokens",
    "show_help",
    "show_version",
    "show_usage",
    "check_faults",
    "run_default",
    "dispatch",
)
