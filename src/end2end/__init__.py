"""Configurable end-to-end HTTP probe for Nagios compatible monitoring."""

from importlib import metadata

try:
    __version__: str = metadata.version("check-end2end")
except metadata.PackageNotFoundError:
    __version__ = "0.0.0"

from .check import End2endCheck
from .config import ConfigLoader, parse_variable
from .error import (
    CheckError,
    ConfigError,
    ConfigurationError,
    InvalidPattern,
    InvalidSeverityToken,
    InvalidThreshold,
    MalformedPayload,
    MalformedStep,
    MalformedVariable,
    MissingURL,
    Timeout,
    UndefinedVariable,
)
from .performance import Performance
from .range import Range, check_threshold
from .result import RunResult
from .runtime import Runtime, guarded
from .state import (
    Critical,
    Ok,
    ServiceState,
    Unknown,
    Warn,
    critical,
    ok,
    state_from_token,
    unknown,
    warn,
    worst,
)
from .step import Step, Steps
from .thresholds import ThresholdTable
from .transport import HttpTransport, NullDump, PageDump, Response

__all__ = [
    "CheckError",
    "ConfigError",
    "ConfigLoader",
    "ConfigurationError",
    "Critical",
    "End2endCheck",
    "HttpTransport",
    "InvalidPattern",
    "InvalidSeverityToken",
    "InvalidThreshold",
    "MalformedPayload",
    "MalformedStep",
    "MalformedVariable",
    "MissingURL",
    "NullDump",
    "Ok",
    "PageDump",
    "Performance",
    "Range",
    "Response",
    "RunResult",
    "Runtime",
    "ServiceState",
    "Step",
    "Steps",
    "ThresholdTable",
    "Timeout",
    "UndefinedVariable",
    "Unknown",
    "Warn",
    "check_threshold",
    "critical",
    "guarded",
    "ok",
    "parse_variable",
    "state_from_token",
    "unknown",
    "warn",
    "worst",
]
