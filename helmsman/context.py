"""
Per-invocation context.

One Context is created for every Application.run() call. It carries the injected
streams, the rich consoles bound to them, the settings and the tokens, and collects
what the pipeline learns along the way (the ParseResult, the binding, the exit code).

Handler parameters annotated with Context receive this object instead of a
command-line value.
"""
from rich.console import Console


def _console(file, colorful):
    return Console(
        file=file,
        color_system="auto" if colorful else None,
        force_terminal=colorful or None,
        highlight=False,
        markup=False,
        emoji=False,
        soft_wrap=True,
    )


class Context:
    """
    Mutable state of one invocation.

    Attributes
    - application: the Application being run.
    - settings: the application Settings.
    - tokens: the raw command-line tokens (list of str).
    - stdin / stdout / stderr: the injected text streams.
    - console / errors: rich consoles writing to stdout / stderr.
    - result: the ParseResult, once parsing ran (None before).
    - binding: the Binding, once values were bound (None before).
    """

    def __init__(self, application, tokens, *, stdin, stdout, stderr):
        self.application = application
        self.settings = application.settings
        self.tokens = list(tokens)
        self.stdin = stdin
        self.stdout = stdout
        self.stderr = stderr
        self.console = _console(stdout, self.settings.colorful)
        self.errors = _console(stderr, self.settings.colorful)
        self.result = None
        self.binding = None

    @property
    def command(self):
        """The resolved CommandDescriptor (None before parsing)."""
        return self.result.command if self.result is not None else None

    def __repr__(self):
        return f"context(tokens={self.tokens!r}, command={getattr(self.command, 'path', None)!r})"


__all__ = (
    "Context",
)
