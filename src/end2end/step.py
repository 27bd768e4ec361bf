"""Step definitions and the registry that orders them.

A step is one configured HTTP request plus its evaluation policy. Steps are
configured as named blocks and executed in ascending lexical order of their
names, so the names double as sequence numbers::

    <Step "00 - Public login page">
        url = "$BASE_URL/login.html"
    </Step>
"""

from __future__ import annotations

import logging
import re
import types
import urllib.parse
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from .error import (
    ConfigurationError,
    InvalidPattern,
    MalformedPayload,
    MalformedStep,
    MissingURL,
)
from .state import ServiceState, critical, state_from_token

_log = logging.getLogger(__name__)

#: Top level settings that serve as defaults for every step.
STEP_DEFAULTS = ("authUser", "authPassword", "method", "onFailure", "onPatternFailure")


def decode_payload(data: str) -> dict[str, str]:
    """Decodes a URL encoded string like ``user=a&password=b``.

    :raises MalformedPayload: if *data* is not a valid query string
    """
    try:
        return dict(
            urllib.parse.parse_qsl(
                str(data).lstrip("?"), keep_blank_values=True, strict_parsing=True
            )
        )
    except ValueError as exc:
        raise MalformedPayload("cannot decode binaryData {0!r}: {1}".format(data, exc))


@dataclass(frozen=True)
class Step:
    name: str
    url: str
    method: str = "get"
    payload: Optional[Mapping[str, str]] = None
    on_failure: ServiceState = critical
    pattern: Optional[re.Pattern[str]] = None
    on_pattern_failure: ServiceState = critical
    basic_auth: Optional[tuple[str, str]] = None

    @classmethod
    def from_config(
        cls,
        name: str,
        raw: Mapping[str, Any],
        base: Optional[Mapping[str, Any]] = None,
    ) -> "Step":
        """Builds a step from its configuration block.

        *base* holds the settings shared by all steps (a global
        ``authUser`` for example); keys in *raw* take precedence.

        :raises MissingURL: if no ``url`` is configured
        :raises MalformedPayload: if ``binaryData`` cannot be decoded
        :raises InvalidSeverityToken: if ``onFailure`` or
            ``onPatternFailure`` name no known state
        :raises InvalidPattern: if ``grepRegex`` does not compile
        """
        conf = dict(base or {})
        conf.update(raw)

        url = conf.get("url")
        if not url:
            raise MissingURL("no url configured for step {0}".format(name))

        payload = None
        data = conf.get("binaryData", conf.get("binary_data"))
        if data is not None:
            payload = types.MappingProxyType(decode_payload(data))

        on_failure = critical
        if conf.get("onFailure") is not None:
            on_failure = state_from_token(conf["onFailure"])

        pattern = None
        if conf.get("grepRegex") is not None:
            if conf.get("grepLiteral") is not None:
                _log.debug("step %s: grepRegex set, ignoring grepLiteral", name)
            try:
                pattern = re.compile(conf["grepRegex"])
            except re.error as exc:
                raise InvalidPattern(
                    "invalid grepRegex for step {0}: {1}".format(name, exc)
                )
        elif conf.get("grepLiteral") is not None:
            pattern = re.compile(re.escape(conf["grepLiteral"]))

        on_pattern_failure = critical
        if conf.get("onPatternFailure") is not None:
            on_pattern_failure = state_from_token(conf["onPatternFailure"])

        basic_auth = None
        if conf.get("authUser") is not None:
            # a password only applies to the user configured next to it
            source = raw if "authUser" in raw else conf
            basic_auth = (conf["authUser"], source.get("authPassword") or "")

        method = str(conf["method"]).lower() if conf.get("method") else "get"

        return cls(
            name=name,
            url=url,
            method=method,
            payload=payload,
            on_failure=on_failure,
            pattern=pattern,
            on_pattern_failure=on_pattern_failure,
            basic_auth=basic_auth,
        )


class Steps:
    """Registry of all step blocks of one run."""

    blocks: dict[str, Mapping[str, Any]]
    base: dict[str, Any]

    def __init__(
        self,
        blocks: Optional[Mapping[str, Mapping[str, Any]]] = None,
        base: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self.blocks = dict(blocks or {})
        self.base = dict(base or {})

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "Steps":
        """Creates the registry from a loaded configuration.

        Step blocks are taken from the ``Step`` collection, step defaults
        from the top level settings listed in :data:`STEP_DEFAULTS`.
        """
        blocks = config.get("Step") or {}
        if not isinstance(blocks, Mapping):
            raise ConfigurationError("Step must be given as named blocks")
        base = {key: config[key] for key in STEP_DEFAULTS if key in config}
        return cls(blocks, base)

    def list(self) -> list[str]:
        """Step names in execution order."""
        return sorted(self.blocks)

    def step(self, name: str) -> Step:
        """Builds the step definition for *name*.

        :raises MalformedStep: if the step block is invalid
        """
        raw = self.blocks.get(name)
        if not isinstance(raw, Mapping):
            raise MalformedStep(
                "Malformed configuration file -- cannot proceed on step "
                "{0}: not a block".format(name)
            )
        try:
            return Step.from_config(name, raw, self.base)
        except ConfigurationError as exc:
            raise MalformedStep(
                "Malformed configuration file -- cannot proceed on step "
                "{0}: {1}".format(name, exc)
            ) from exc

    def __len__(self) -> int:
        return len(self.blocks)

    def __contains__(self, name: str) -> bool:
        return name in self.blocks
