"""Command line interface of ``check_end2end``."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Any, Mapping, NoReturn, Optional, Sequence

from . import __version__
from .check import End2endCheck
from .config import ConfigLoader, parse_variable
from .error import CheckError, InvalidThreshold
from .range import Range
from .runtime import Runtime, guarded
from .step import Steps
from .thresholds import ThresholdTable
from .transport import HttpTransport, NullDump, PageDump

_log = logging.getLogger(__name__)

DEFAULT_NAME = "END2END"
DEFAULT_USER_AGENT = "check_end2end"

#: Accepted spellings of the top level settings, preferred first.
NAME_KEYS = ("shortname", "Monitoring::Plugin::shortname")
USER_AGENT_KEYS = ("userAgent", "LWP::UserAgent::agent")

THRESHOLD_HELP = (
    "See https://www.monitoring-plugins.org/doc/guidelines.html#THRESHOLDFORMAT "
    "for the threshold format."
)


class _CustomArgumentParser(argparse.ArgumentParser):
    """
    Override the exit method for the options ``--help``, ``-h`` and ``--version``,
    ``-V`` with ``Unknown`` (exit code 3), according to the
    `Monitoring Plugin Guidelines
    <https://github.com/monitoring-plugins/monitoring-plugin-guidelines/blob/main/monitoring_plugins_interface/02.Input.md>`__.
    """

    def exit(self, status: int = 3, message: Optional[str] = None) -> NoReturn:
        if message:
            self._print_message(message, sys.stderr)
        sys.exit(status)

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(3, "{0}: error: {1}\n".format(self.prog, message))


def setup_argparser(
    name: str = "check_end2end",
    version: Optional[str] = __version__,
    description: Optional[str] = None,
    epilog: Optional[str] = None,
) -> argparse.ArgumentParser:
    """Creates the argument parser of the plugin.

    Help, usage errors and ``--version`` exit with the UNKNOWN code as the
    plugin guidelines ask for.
    """
    description_lines: list[str] = []
    if version is not None:
        description_lines.append(f"version {version}")
    if description is not None:
        description_lines.append("")
        description_lines.append(description)

    parser: argparse.ArgumentParser = _CustomArgumentParser(
        prog=name,
        formatter_class=lambda prog: argparse.RawDescriptionHelpFormatter(
            prog, width=80
        ),
        description="\n".join(description_lines),
        epilog=epilog,
    )
    if version is not None:
        parser.add_argument(
            "-V", "--version", action="version", version=f"%(prog)s {version}"
        )

    parser.add_argument(
        "-f",
        "--config-file",
        required=True,
        metavar="FILE",
        help="Configuration of the steps to be performed.",
    )
    parser.add_argument(
        "-w",
        "--warning",
        default="",
        help="Warning threshold for each single step, either one value for "
        "all steps or a comma separated list applied in step order. "
        + THRESHOLD_HELP,
    )
    parser.add_argument(
        "-c",
        "--critical",
        default="",
        help="Critical threshold for each single step, see --warning.",
    )
    parser.add_argument(
        "-W",
        "--total-warning",
        default="",
        help="Warning threshold for the whole process. " + THRESHOLD_HELP,
    )
    parser.add_argument(
        "-C",
        "--total-critical",
        default="",
        help="Critical threshold for the whole process. " + THRESHOLD_HELP,
    )
    parser.add_argument(
        "-t",
        "--timeout",
        type=int,
        default=0,
        metavar="SECONDS",
        help="Abort the whole check after so many seconds (0: no timeout).",
    )
    parser.add_argument(
        "-d", "--debug", action="store_true", help="Print debugging messages to stderr."
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase output verbosity (use up to 3 times).",
    )
    parser.add_argument(
        "-e",
        "--env",
        action="store_true",
        help="Interpolate environment variables in the configuration file.",
    )
    parser.add_argument(
        "-x",
        "--proxy-from-env",
        action="store_true",
        help="Use the proxy settings from the environment.",
    )
    parser.add_argument(
        "--var",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Define a variable for the configuration file. Can be repeated, "
        "implies --env.",
    )
    parser.add_argument(
        "--dump-dir",
        metavar="DIR",
        help="Save the page returned by every step into this directory.",
    )
    return parser


def _validate_range(option: str, spec: str) -> None:
    if not spec:
        return
    try:
        Range(spec)
    except ValueError as exc:
        raise InvalidThreshold("invalid threshold '{0}' for {1}: {2}".format(
            spec, option, exc
        )) from exc


def _setting(config: Mapping[str, Any], keys: Sequence[str]) -> Optional[str]:
    for key in keys:
        if config.get(key):
            return config[key]
    return None


def build_check(args: argparse.Namespace, transport: Any = None) -> End2endCheck:
    """Loads the configuration and assembles the check.

    :raises CheckError: on configuration errors
    """
    variables = dict(parse_variable(spec) for spec in args.var)
    loader = ConfigLoader(interpolate_env=args.env or bool(variables), variables=variables)
    config = loader.load(args.config_file)

    steps = Steps.from_config(config)
    names = steps.list()
    if not names:
        raise CheckError("no steps configured in {0}".format(args.config_file))
    warnings = ThresholdTable.build(args.warning, names)
    _log.debug("warning thresholds: %r", warnings)
    criticals = ThresholdTable.build(args.critical, names)
    _log.debug("critical thresholds: %r", criticals)
    for option, spec in (("-W", args.total_warning), ("-C", args.total_critical)):
        _validate_range(option, spec)

    if transport is None:
        transport = HttpTransport(
            user_agent=_setting(config, USER_AGENT_KEYS) or DEFAULT_USER_AGENT,
            proxy=config.get("proxy") or None,
            proxy_from_env=args.proxy_from_env,
        )
    return End2endCheck(
        steps,
        transport,
        warnings=warnings,
        criticals=criticals,
        total_warning=args.total_warning,
        total_critical=args.total_critical,
        dump=PageDump(args.dump_dir) if args.dump_dir else NullDump(),
        name=_setting(config, NAME_KEYS) or DEFAULT_NAME,
    )


@guarded
def main(argv: Optional[Sequence[str]] = None) -> None:
    runtime = Runtime()
    runtime.name = DEFAULT_NAME
    args = setup_argparser(
        description="Fakes a website navigation as configured in the named "
        "configuration file. Steps are performed in alphabetical order of "
        "their names.",
    ).parse_args(argv)
    if args.debug:
        runtime.enable_debug()
    check = build_check(args)
    check.main(args.verbose, args.timeout)


if __name__ == "__main__":
    main()
