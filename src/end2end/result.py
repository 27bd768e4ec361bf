"""Outcome of one probe run.

:class:`RunResult` collects the narrative lines produced while the steps
are executed, grouped by state, and keeps track of the worst state seen so
far. The state never goes down during a run.
"""

from __future__ import annotations

from .state import ServiceState, critical, ok, warn, worst

BANNER = "Check complete. "


class RunResult:
    state: ServiceState
    oks: list[str]
    warnings: list[str]
    criticals: list[str]

    def __init__(self) -> None:
        self.state = ok
        self.oks = []
        self.warnings = []
        self.criticals = []

    def raise_status(self, state: ServiceState) -> None:
        """Raises the overall state to *state* if that is worse."""
        self.state = worst([self.state, state])

    def add_ok(self, line: str) -> None:
        self.oks.append(line)

    def add_warning(self, line: str) -> None:
        self.warnings.append(line)
        self.raise_status(warn)

    def add_critical(self, line: str) -> None:
        self.criticals.append(line)
        self.raise_status(critical)

    def add(self, state: ServiceState, line: str) -> None:
        """Records *line* in the group matching *state*.

        There is no separate group for unknown lines, they are listed with
        the critical ones but still raise the overall state to unknown.
        """
        if state == ok:
            self.add_ok(line)
        elif state == warn:
            self.add_warning(line)
        else:
            self.add_critical(line)
            self.raise_status(state)

    def message(self, prefix: str = "") -> str:
        """Renders the status line text.

        Groups appear in the order critical, warning, ok and are left out
        when empty.
        """
        msg = BANNER + prefix
        for label, lines in (
            ("CRITICAL", self.criticals),
            ("WARNING", self.warnings),
            ("OK", self.oks),
        ):
            if lines:
                msg += "{0} steps: {1}; ".format(label, "; ".join(lines))
        return msg

    def __bool__(self) -> bool:
        return bool(self.oks or self.warnings or self.criticals)

    def __repr__(self) -> str:
        return "<RunResult {0}: {1} ok, {2} warning, {3} critical>".format(
            self.state, len(self.oks), len(self.warnings), len(self.criticals)
        )

