"""Assembles the text printed by the plugin.

The first line always carries the status, the step messages and the
perfdata of all steps plus the total duration. With ``-v`` the problem
lines follow one per line, then the captured log messages. The pipe
character separates the perfdata and is removed from everything else.
"""

from __future__ import annotations

import io
import typing
from logging import StreamHandler

from .state import ServiceState

if typing.TYPE_CHECKING:
    from .check import End2endCheck

PERFDATA_SEPARATOR = "|"


def status_line(name: str, state: ServiceState, text: str) -> str:
    """Formats ``NAME STATE - text`` as Nagios expects it."""
    return "{0}{1}{2}".format(
        name.upper() + " " if name else "",
        str(state).upper(),
        " - " + text if text else "",
    )


class Output:
    logchan: StreamHandler[io.StringIO]
    verbose: int
    status: str
    details: list[str]
    removed: list[str]

    def __init__(self, logchan: StreamHandler[io.StringIO], verbose: int = 0) -> None:
        self.logchan = logchan
        self.verbose = verbose
        self.status = ""
        self.details = []
        self.removed = []

    def add(self, check: "End2endCheck") -> None:
        self.set_status(check.name, check.state, check.summary_str.strip())
        if check.perfdata:
            self.status += " {0} {1}".format(
                PERFDATA_SEPARATOR,
                self._screen(" ".join(check.perfdata), "perfdata"),
            )
        if self.verbose > 0:
            self.add_details(check.verbose_str)

    def set_status(self, name: str, state: ServiceState, text: str) -> None:
        self.status = self._screen(status_line(name, state, text), "status line")

    def add_details(self, lines: typing.Iterable[str]) -> None:
        for line in lines:
            self.details.append(self._screen(line, "details"))

    def __str__(self) -> str:
        log = self._screen(self.logchan.stream.getvalue(), "logging output")
        lines = [self.status] + self.details + [log] + self.removed
        return "\n".join(line for line in lines if line) + "\n"

    def _screen(self, text: str, where: str) -> str:
        text = text.rstrip("\n")
        screened = text.replace(PERFDATA_SEPARATOR, "")
        if screened != text:
            self.removed.append(
                "warning: removed illegal characters (0x{0:x}) from {1}".format(
                    ord(PERFDATA_SEPARATOR), where
                )
            )
        return screened
