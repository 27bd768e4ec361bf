"""Configuration file loading.

The configuration file uses the Config::General/Apache style syntax the
check has always been configured with::

    # Optional - override the default name in outputs
    shortname = "Check www.example.com Login"
    userAgent = "Nagios login check"
    BASE_URL = "https://www.example.com"

    <Step "00 - Public login page">
        url = "$BASE_URL/login.html"
    </Step>

    <Step "01 - Login verification">
        url = "$BASE_URL/login.html"
        binaryData = username=exampleuser&\\
            password=examplepassword
        method = POST
    </Step>

Parsing and variable interpolation are done by :mod:`apacheconfig`.
Variables given on the command line are defined ahead of the file, so
settings of the file win over them.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Mapping, Optional

from apacheconfig import ApacheConfigError, make_loader

from .error import ConfigError, MalformedVariable, UndefinedVariable

_log = logging.getLogger(__name__)

_VARIABLE_NAME = re.compile(r"^[A-Za-z_]\w*$")


def parse_variable(spec: str) -> tuple[str, str]:
    """Splits a ``NAME=VALUE`` command line variable.

    :raises MalformedVariable: if *spec* has no ``=`` or an invalid name
    """
    name, sep, value = spec.partition("=")
    name = name.strip()
    if not sep or not _VARIABLE_NAME.match(name):
        raise MalformedVariable(
            "malformed variable {0!r} (expected NAME=VALUE)".format(spec)
        )
    return name, value


def _unquote(text: str) -> str:
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "\"'":
        return text[1:-1]
    return text


def _escape(value: str) -> str:
    return re.sub(r"([$#\"])", r"\\\1", value)


def _normalize(node: Any) -> Any:
    """Flattens the loader's output into nested dictionaries of strings.

    Repeated options collapse to their last value and repeated blocks are
    merged.
    """
    if isinstance(node, dict):
        return {_unquote(str(key)): _normalize(value) for key, value in node.items()}
    if isinstance(node, list):
        if node and all(isinstance(item, dict) for item in node):
            merged: dict[str, Any] = {}
            for item in node:
                merged.update(_normalize(item))
            return merged
        return _normalize(node[-1]) if node else ""
    if node is None:
        return ""
    return node


class ConfigLoader:
    """Reads configuration files into nested dictionaries.

    :param interpolate_env: resolve variables from the process environment
    :param variables: additional variables, e.g. from ``--var NAME=VALUE``
    :param strict: fail on references to undefined variables instead of
        leaving them untouched
    """

    interpolate_env: bool
    variables: dict[str, str]
    strict: bool

    def __init__(
        self,
        interpolate_env: bool = False,
        variables: Optional[Mapping[str, str]] = None,
        strict: bool = True,
    ) -> None:
        self.interpolate_env = interpolate_env
        self.variables = dict(variables or {})
        self.strict = strict

    @property
    def options(self) -> dict[str, Any]:
        return {
            "namedblocks": True,
            "interpolatevars": True,
            "interpolateenv": self.interpolate_env,
            "strictvars": self.strict,
            "mergeduplicateblocks": True,
            "mergeduplicateoptions": True,
        }

    def load(self, path: str) -> dict[str, Any]:
        """Reads and parses the configuration file at *path*.

        :raises ConfigError: if the file cannot be read or parsed
        :raises UndefinedVariable: on references to unknown variables in
            strict mode
        """
        try:
            with open(path, encoding="utf-8") as fobj:
                text = fobj.read()
        except OSError as exc:
            raise ConfigError(
                "cannot read configuration file {0}: {1}".format(path, exc.strerror)
            )
        _log.debug("loading configuration from %s", path)
        return self.loads(text, source=path)

    def loads(self, text: str, source: str = "<string>") -> dict[str, Any]:
        preamble = "".join(
            '{0} = "{1}"\n'.format(name, _escape(value))
            for name, value in self.variables.items()
        )
        try:
            with make_loader(**self.options) as loader:
                config = loader.loads(preamble + text)
        except ApacheConfigError as exc:
            if "undefined variable" in str(exc).lower():
                raise UndefinedVariable("{0}: {1}".format(source, exc)) from exc
            raise ConfigError(
                "cannot parse configuration {0}: {1}".format(source, exc)
            ) from exc
        return _normalize(config or {})
