import io
import logging
import time

import pytest

from end2end import CheckError, MissingURL, Timeout
from end2end.runtime import Runtime, guarded, with_timeout
from end2end.state import ok


def make_check():
    class Check:
        summary_str = "summary"
        verbose_str = ["long output"]
        name = "check"
        state = ok
        exitcode = 0
        perfdata: list[str] = []

        def __call__(self) -> None:
            pass

    return Check()


class TestRuntimeBase:
    def setup_method(self) -> None:
        Runtime.instance = None
        self.r = Runtime()
        self.r.sysexit = lambda: None  # type: ignore
        self.r.stdout = io.StringIO()  # type: ignore


class TestRuntime(TestRuntimeBase):
    def test_runtime_is_singleton(self) -> None:
        assert self.r is Runtime()

    def test_run_sets_exitcode(self) -> None:
        self.r.run(make_check())  # type: ignore
        assert 0 == self.r.exitcode

    def test_verbose(self) -> None:
        testcases = [
            (None, logging.WARNING, 0),
            (1, logging.WARNING, 1),
            ("vv", logging.INFO, 2),
            (3, logging.DEBUG, 3),
            ("vvvv", logging.DEBUG, 3),
        ]
        for argument, exp_level, exp_verbose in testcases:
            self.r.verbose = argument
            assert exp_level == self.r.logchan.level
            assert exp_verbose == self.r.verbose

    def test_execute_uses_defaults(self) -> None:
        self.r.execute(make_check())  # type: ignore
        assert 0 == self.r.verbose
        assert None is self.r.timeout
        assert "CHECK OK - summary\n" == self.r.stdout.getvalue()  # type: ignore

    def test_execute_sets_verbose_and_timeout(self) -> None:
        self.r.execute(make_check(), 2, 10)  # type: ignore
        assert 2 == self.r.verbose
        assert 10 == self.r.timeout


class TestRuntimeException(TestRuntimeBase):
    def run_main_with_exception(self, exc: Exception) -> None:
        @guarded
        def main():
            raise exc

        main()

    def test_handle_exception_set_exitcode_and_formats_output(self) -> None:
        self.run_main_with_exception(RuntimeError("problem"))
        assert 3 == self.r.exitcode
        assert "UNKNOWN - RuntimeError: problem" in self.r.stdout.getvalue()  # type: ignore

    def test_handle_exception_prints_no_traceback_by_default(self) -> None:
        self.run_main_with_exception(RuntimeError("problem"))
        assert "Traceback" not in self.r.stdout.getvalue()  # type: ignore

    def test_handle_exception_verbose(self) -> None:
        self.r.verbose = 1
        self.run_main_with_exception(RuntimeError("problem"))
        assert "Traceback" in self.r.stdout.getvalue()  # type: ignore

    def test_check_error_is_a_single_line(self) -> None:
        self.r.verbose = 1
        self.r.name = "END2END"
        self.run_main_with_exception(MissingURL("no url configured for step 00"))
        assert 3 == self.r.exitcode
        assert (
            "END2END UNKNOWN - no url configured for step 00\n"
            == self.r.stdout.getvalue()  # type: ignore
        )

    def test_handle_timeout_exception(self) -> None:
        self.run_main_with_exception(Timeout("1s"))
        assert (
            "UNKNOWN - Timeout: check execution aborted after 1s"
            in self.r.stdout.getvalue()  # type: ignore
        )

    def test_guarded_set_verbosity(self) -> None:
        @guarded(verbose=0)
        def main():
            pass

        main()
        assert 0 == self.r.verbose

    def test_guarded_no_keyword(self) -> None:
        with pytest.raises(AssertionError):

            @guarded(0)  # type: ignore
            def main():
                pass

    def test_check_error_hierarchy(self) -> None:
        assert issubclass(MissingURL, CheckError)


class TestWithTimeout:
    def test_timeout(self) -> None:
        with pytest.raises(Timeout):
            with_timeout(1, time.sleep, 2)

    def test_no_timeout(self) -> None:
        calls = []
        with_timeout(1, calls.append, "done")
        assert ["done"] == calls
