"""
In-memory harness for exercising applications in tests.

run_in_memory() runs an application with string-backed stdin/stdout/stderr and
returns what was written. Anything handlers print() is captured too (sys.stdout and
sys.stderr are redirected for the duration of the run).

    >>> result = run_in_memory(Git, "status --short")
    >>> result.exit_code, result.stdout
    (0, '...')
"""
import contextlib
import io

from .pipeline import Application
from .utils import Introspective


class _Capture(io.StringIO):
    """
    String stream that also records every write in a journal shared with its
    sibling stream, so interleaved output keeps its order.
    """

    def __init__(self, journal):
        super().__init__()
        self._journal = journal

    def write(self, text):
        self._journal.append(text)
        return super().write(text)


class RunResult(metaclass=Introspective):
    """
    Outcome of run_in_memory().

    - exit_code: the exit code returned by the application.
    - stdout / stderr: everything written to each channel.
    - output: everything written to both channels, in write order.
    """
    __introspectable__ = (
        "exit_code",
        "stdout",
        "stderr",
        "output",
    )

    def __init__(self, exit_code, stdout, stderr, output):
        self._exit_code = exit_code
        self._stdout = stdout
        self._stderr = stderr
        self._output = output


def run_in_memory(root, tokens=(), settings=None, *, input=""):
    """
    Run root (a declaration or an Application) over tokens with in-memory streams.

    Parameters
    - root: a command class, a plain function or an Application.
    - tokens: str (shell-split) or iterable of str.
    - settings: Settings for a declaration (ignored for an Application).
    - input: text served on stdin.
    """
    application = root if isinstance(root, Application) else Application(root, settings)

    journal = []
    stdout, stderr = _Capture(journal), _Capture(journal)
    with contextlib.redirect_stdout(stdout), contextlib.redirect_stderr(stderr):
        exit_code = application.run(tokens, stdin=io.StringIO(input), stdout=stdout, stderr=stderr)

    return RunResult(exit_code, stdout.getvalue(), stderr.getvalue(), "".join(journal))


__all__ = (
    "RunResult",
    "run_in_memory",
)
