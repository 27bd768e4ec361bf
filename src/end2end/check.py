"""Controller logic for the end-to-end probe.

This module contains the :class:`End2endCheck` class which performs the
configured steps one after the other and evaluates every outcome.
Interfacing with the outside system is done via a separate
:class:`~end2end.runtime.Runtime` object.

Each step is checked for success first. A failed request or a response
without the expected content is handled according to the step's
``onFailure``/``onPatternFailure`` policy: ok and warning let the run
continue, critical and unknown end it right away. Duration thresholds are
evaluated for every successful step whose content matched and never end
the run.
"""

from __future__ import annotations

import logging
import re
import time
from typing import Any, Callable, NoReturn, Optional

from .performance import Performance, step_label
from .range import check_threshold
from .result import RunResult
from .runtime import Runtime
from .state import ServiceState, critical, ok, warn
from .step import Step, Steps
from .thresholds import ThresholdTable
from .transport import NullDump, Response, Transport

_log = logging.getLogger(__name__)


class End2endCheck:
    steps: Steps
    transport: Transport
    warnings: ThresholdTable
    criticals: ThresholdTable
    total_warning: str
    total_critical: str
    name: str
    result: RunResult
    perfdata: list[str]
    executed: list[str]
    total_duration: float
    aborted: bool

    def __init__(
        self,
        steps: Steps,
        transport: Transport,
        warnings: Optional[ThresholdTable] = None,
        criticals: Optional[ThresholdTable] = None,
        total_warning: Optional[str] = None,
        total_critical: Optional[str] = None,
        dump: Any = None,
        name: str = "END2END",
        timer: Callable[[], float] = time.perf_counter,
    ) -> None:
        """Creates a probe run.

        :param steps: registry of the configured steps
        :param transport: performs the HTTP requests
        :param warnings: per-step warning thresholds
        :param criticals: per-step critical thresholds
        :param total_warning: warning threshold for the whole run
        :param total_critical: critical threshold for the whole run
        :param dump: sink for response bodies (see
            :class:`~end2end.transport.PageDump`)
        :param name: prefix of the status line
        :param timer: clock used to measure durations
        """
        self.steps = steps
        self.transport = transport
        self.warnings = warnings or ThresholdTable()
        self.criticals = criticals or ThresholdTable()
        self.total_warning = total_warning or ""
        self.total_critical = total_critical or ""
        self.dump = dump or NullDump()
        self.name = name
        self.timer = timer
        self.result = RunResult()
        self.perfdata = []
        self.executed = []
        self.total_duration = 0.0
        self.aborted = False
        self._total_message = ""

    def _perform(self, step: Step) -> tuple[Response, float]:
        before = self.timer()
        response = self.transport.request(
            step.method, step.url, step.payload, auth=step.basic_auth
        )
        after = self.timer()
        return response, round(after - before, 3)

    def _handle_failure(self, step: Step, response: Response) -> bool:
        """Applies the step's failure policy. Returns False to end the run."""
        line = "Step {0} failed ({1})".format(step.name, response.status_line)
        if step.on_failure == ok:
            self.result.add_ok(line + ", ignored")
            return True
        self.result.add(step.on_failure, line)
        return not step.on_failure > warn

    def _handle_pattern_failure(self, step: Step, pattern: re.Pattern[str]) -> bool:
        """Applies the step's content policy. Returns False to end the run."""
        line = "Step {0}: pattern /{1}/ not found".format(step.name, pattern.pattern)
        if step.on_pattern_failure == ok:
            self.result.add_ok(line + ", ignored")
            return True
        self.result.add(step.on_pattern_failure, line)
        return not step.on_pattern_failure > warn

    def _check_duration(self, step: Step, duration: float) -> None:
        warning = self.warnings.get(step.name)
        crit = self.criticals.get(step.name)
        state = check_threshold(duration, warning, crit)
        if state == critical:
            self.result.add_critical(
                "Step {0} took {1:.3f}s > {2}s".format(step.name, duration, crit)
            )
        elif state == warn:
            self.result.add_warning(
                "Step {0} took {1:.3f}s > {2}s".format(step.name, duration, warning)
            )
        else:
            self.result.add_ok("Step {0} took {1:.3f}s".format(step.name, duration))

    def _run_step(self, name: str) -> bool:
        """Performs and evaluates one step. Returns False to end the run."""
        step = self.steps.step(name)
        _log.debug("performing step %s: %s %s", name, step.method.upper(), step.url)

        response, duration = self._perform(step)
        self.executed.append(name)
        self.total_duration = round(self.total_duration + duration, 3)
        self.dump.write(name, response.body)
        _log.info("step %s: %s in %.3fs", name, response.status_line, duration)

        if not response.success:
            return self._handle_failure(step, response)

        self.perfdata.append(
            str(
                Performance(
                    step_label(name),
                    "{0:.3f}".format(duration),
                    "s",
                    self.warnings.get(name),
                    self.criticals.get(name),
                )
            )
        )
        if step.pattern is not None and not step.pattern.search(response.body):
            return self._handle_pattern_failure(step, step.pattern)
        self._check_duration(step, duration)
        return True

    def _check_total(self) -> None:
        state = check_threshold(
            self.total_duration, self.total_warning, self.total_critical
        )
        if state == critical:
            self._total_message = "CRITICAL: Total duration was {0:.3f}s > {1}s; ".format(
                self.total_duration, self.total_critical
            )
        elif state == warn:
            self._total_message = "WARNING: Total duration was {0:.3f}s > {1}s; ".format(
                self.total_duration, self.total_warning
            )
        self.result.raise_status(state)

    def __call__(self) -> None:
        """Actually run the check.

        Steps are performed in the order given by
        :meth:`~end2end.step.Steps.list`. After a check has been called,
        :attr:`result` and :attr:`perfdata` are populated with the
        outcomes.
        """
        for name in self.steps.list():
            if not self._run_step(name):
                _log.info("step %s ends the run with %s", name, self.result.state)
                self.aborted = True
                break
        if not self.aborted:
            self._check_total()
        self.perfdata.append(
            str(
                Performance(
                    "Total_duration",
                    "{0:.3f}".format(self.total_duration),
                    "s",
                    self.total_warning,
                    self.total_critical,
                )
            )
        )

    def main(self, verbose: Any = None, timeout: Any = None) -> NoReturn:
        """Runs the check in the runtime environment, prints and exits.

        :param verbose: output verbosity level between 0 and 3
        :param timeout: abort check execution with a
            :exc:`~end2end.error.Timeout` exception after so many seconds
            (use 0 for no timeout)
        """
        runtime = Runtime()
        runtime.execute(self, verbose, timeout)

    @property
    def state(self) -> ServiceState:
        """Overall check state, the worst state seen so far."""
        return self.result.state

    @property
    def summary_str(self) -> str:
        return self.result.message(self._total_message)

    @property
    def verbose_str(self) -> list[str]:
        """Additional lines of output, one per non-ok line."""
        return ["critical: {0}".format(line) for line in self.result.criticals] + [
            "warning: {0}".format(line) for line in self.result.warnings
        ]

    @property
    def exitcode(self) -> int:
        """Overall check exit code according to the Nagios API."""
        return int(self.state)
