"""HTTP access for the probe.

:class:`HttpTransport` keeps one :class:`requests.Session` for the whole run
so cookies set by one step are sent with the following ones. Credentials
are handed to every single request and never stored on the session.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Protocol

import requests

_log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Response:
    success: bool
    status_line: str
    body: str = ""


class Transport(Protocol):
    def request(
        self,
        method: str,
        url: str,
        data: Optional[Mapping[str, str]] = None,
        auth: Optional[tuple[str, str]] = None,
    ) -> Response: ...


class HttpTransport:
    """Performs the steps' requests with :mod:`requests`.

    :param user_agent: value of the User-Agent header
    :param proxy: proxy URL used for both http and https requests
    :param proxy_from_env: honour ``http_proxy``/``https_proxy`` and
        friends from the environment
    :param timeout: socket timeout per request in seconds
    """

    session: requests.Session
    timeout: Optional[float]

    def __init__(
        self,
        user_agent: str = "check_end2end",
        proxy: Optional[str] = None,
        proxy_from_env: bool = False,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.session = session if session is not None else requests.Session()
        self.session.headers["User-Agent"] = user_agent
        self.session.trust_env = proxy_from_env
        if proxy:
            self.session.proxies.update({"http": proxy, "https": proxy})
        self.timeout = timeout

    def request(
        self,
        method: str,
        url: str,
        data: Optional[Mapping[str, str]] = None,
        auth: Optional[tuple[str, str]] = None,
    ) -> Response:
        kwargs: dict[str, Any] = {"timeout": self.timeout, "auth": auth}
        if data is not None:
            kwargs["data"] = dict(data)
        try:
            response = self.session.request(method.upper(), url, **kwargs)
        except requests.RequestException as exc:
            _log.info("%s %s failed: %s", method.upper(), url, exc)
            return Response(False, str(exc))
        status_line = "{0} {1}".format(response.status_code, response.reason or "").strip()
        _log.debug("%s %s: %s", method.upper(), url, status_line)
        return Response(response.status_code < 400, status_line, response.text)


class NullDump:
    """Page dump sink that discards everything."""

    def write(self, name: str, content: str) -> None:
        pass


class PageDump:
    """Saves each step's response body to a directory for inspection."""

    directory: str

    def __init__(self, directory: str) -> None:
        self.directory = directory

    def path(self, name: str) -> str:
        return os.path.join(self.directory, re.sub(r"[^\w.-]+", "_", name) + ".html")

    def write(self, name: str, content: str) -> None:
        os.makedirs(self.directory, exist_ok=True)
        path = self.path(name)
        with open(path, "w", encoding="utf-8") as fobj:
            fobj.write(content)
        _log.debug("dumped page of step %s to %s", name, path)
