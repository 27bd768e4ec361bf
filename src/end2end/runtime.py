"""Functions and classes to interface with the system.

This module contains the :class:`Runtime` class that handles exceptions,
the global timeout and logging. The command line entry point is decorated
with :func:`guarded` so that every failure still produces a single
plugin-API compliant status line and an UNKNOWN exit code.
"""

from __future__ import annotations

import functools
import io
import logging
import os
import signal
import sys
import traceback
import typing
from typing import Any, Callable, NoReturn, Optional, ParamSpec, TypeVar

from typing_extensions import Self

from .error import CheckError, Timeout
from .output import Output
from .state import unknown

if typing.TYPE_CHECKING:
    from .check import End2endCheck


P = ParamSpec("P")
R = TypeVar("R")


def with_timeout(
    time: int, func: Callable[..., Any], *args: Any, **kwargs: Any
) -> None:
    """Call `func` but terminate after `time` seconds.

    The alarm is armed once for the whole call and fires at most once.
    """

    if os.name != "posix":
        raise RuntimeError("timeouts require POSIX signals")

    def timeout_handler(signum: int, frame: Any) -> NoReturn:
        raise Timeout("{0}s".format(time))

    signal.signal(signal.SIGALRM, timeout_handler)
    signal.alarm(time)
    try:
        func(*args, **kwargs)
    finally:
        signal.alarm(0)


def guarded(
    original_function: Optional[Callable[P, R]] = None, verbose: Optional[int] = None
) -> Callable[P, R]:
    """Runs a function in end2end's Runtime environment.

    `guarded` makes the decorated function behave correctly with respect
    to the Nagios plugin API if it aborts with an uncaught exception or
    a timeout. It exits with an *unknown* exit code and prints a
    single status line. Unexpected errors are followed by a traceback
    in verbose mode.

    :param verbose: Optional keyword parameter to control verbosity
        level during early execution (before
        :meth:`~end2end.check.End2endCheck.main` has been called).
    """

    def _decorate(func: Callable[P, R]):
        @functools.wraps(func)
        # pylint: disable-next=inconsistent-return-statements
        def wrapper(*args: Any, **kwds: Any):
            runtime = Runtime()
            if verbose is not None:
                runtime.verbose = verbose
            try:
                return func(*args, **kwds)
            except Timeout as exc:
                runtime._handle_exception(  # type: ignore
                    "Timeout: check execution aborted after {0}".format(exc),
                    with_traceback=False,
                )
            except CheckError as exc:
                runtime._handle_exception(str(exc), with_traceback=False)  # type: ignore
            except Exception:
                runtime._handle_exception()  # type: ignore

        return wrapper

    if original_function is not None:
        assert callable(original_function), (
            'Function {!r} not callable. Forgot to add "verbose=" keyword?'.format(
                original_function
            )
        )
        return _decorate(original_function)
    return _decorate  # type: ignore


class Runtime:
    instance = None
    check: Optional["End2endCheck"] = None
    name: str = ""
    _verbose = 0
    timeout: Optional[int] = None
    logchan: logging.StreamHandler[io.StringIO]
    output: Output
    stdout = None
    exitcode: int = 70  # EX_SOFTWARE

    def __new__(cls) -> Self:
        if not cls.instance:
            cls.instance = super(Runtime, cls).__new__(cls)
        return cls.instance

    def __init__(self) -> None:
        if "output" in self.__dict__:
            return
        rootlogger = logging.getLogger(__name__.split(".", 1)[0])
        rootlogger.setLevel(logging.DEBUG)
        self.logchan = logging.StreamHandler(io.StringIO())
        self.logchan.setFormatter(logging.Formatter("%(message)s"))
        self.logchan.setLevel(logging.WARNING)
        rootlogger.addHandler(self.logchan)
        self.output = Output(self.logchan)

    def _handle_exception(
        self, statusline: Optional[str] = None, with_traceback: bool = True
    ) -> NoReturn:
        exc_type, value = sys.exc_info()[0:2]
        self.output.set_status(
            self.check.name if self.check else self.name,
            unknown,
            statusline or traceback.format_exception_only(exc_type, value)[0].strip(),
        )
        if with_traceback and self.verbose > 0:
            self.output.add_details(traceback.format_exc().splitlines())
        print("{0}".format(self.output), end="", file=self.stdout)
        self.exitcode = 3
        self.sysexit()

    @property
    def verbose(self) -> int:
        return self._verbose

    @verbose.setter
    def verbose(self, verbose: Any) -> None:
        if isinstance(verbose, int):
            self._verbose = verbose
        elif isinstance(verbose, float):
            self._verbose = int(verbose)
        else:
            self._verbose = len(verbose or [])
        if self._verbose >= 3:
            self.logchan.setLevel(logging.DEBUG)
            self._verbose = 3
        elif self._verbose == 2:
            self.logchan.setLevel(logging.INFO)
        else:
            self.logchan.setLevel(logging.WARNING)
        self.output.verbose = self._verbose

    def enable_debug(self) -> None:
        """Copies every log message to stderr."""
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("DEBUG :: %(name)s: %(message)s"))
        handler.setLevel(logging.DEBUG)
        logging.getLogger(__name__.split(".", 1)[0]).addHandler(handler)

    def run(self, check: "End2endCheck") -> None:
        check()
        self.output.add(check)
        self.exitcode = check.exitcode

    def execute(
        self, check: "End2endCheck", verbose: Any = None, timeout: Any = None
    ) -> NoReturn:
        self.check = check
        if verbose is not None:
            self.verbose = verbose
        if timeout is not None:
            self.timeout = int(timeout)
        if self.timeout:
            with_timeout(self.timeout, self.run, check)
        else:
            self.run(check)
        print("{0}".format(self.output), end="", file=self.stdout)
        self.sysexit()

    def sysexit(self) -> NoReturn:
        sys.exit(self.exitcode)
