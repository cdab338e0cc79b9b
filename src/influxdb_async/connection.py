"""Connection context shared by every operation of a client."""

from __future__ import annotations

from typing import Any, Mapping, Optional
import logging
import ssl

import httpx

from .config import DEFAULT_SERVER, RequestObserver

logger = logging.getLogger(__name__)


def build_ssl_context(options: Optional[Mapping[str, Any]]) -> ssl.SSLContext:
    """Build a client TLS context.

    Without options the context does not verify the server certificate.
    Recognised options: ``verify``, ``verify_peername`` / ``check_hostname``,
    ``ca_file``, ``ca_path``, ``cert_file``, ``key_file``.
    """
    ctx = ssl.create_default_context(ssl.Purpose.SERVER_AUTH)
    if not options:
        ctx.check_hostname = False
        ctx.verify_mode = ssl.CERT_NONE
        return ctx

    if options.get("ca_file") or options.get("ca_path"):
        ctx.load_verify_locations(cafile=options.get("ca_file"), capath=options.get("ca_path"))
    if options.get("cert_file"):
        ctx.load_cert_chain(certfile=options["cert_file"], keyfile=options.get("key_file"))

    verify = bool(options.get("verify", False))
    check_hostname = options.get("check_hostname", options.get("verify_peername"))
    ctx.check_hostname = verify and bool(check_hostname if check_hostname is not None else True)
    ctx.verify_mode = ssl.CERT_REQUIRED if verify else ssl.CERT_NONE
    return ctx


class ConnectionContext:
    """Server address, credentials and TLS material for one client.

    Everything except ``server`` is fixed at construction. Reassigning
    ``server`` recomputes the derived values; do not do that while requests
    are in flight.
    """

    def __init__(
        self,
        server: str = DEFAULT_SERVER,
        username: Optional[str] = None,
        password: Optional[str] = None,
        ssl_options: Optional[Mapping[str, Any]] = None,
        on_request: Optional[RequestObserver] = None,
    ) -> None:
        self.username = username
        self.password = password
        self.ssl_options = dict(ssl_options) if ssl_options is not None else None
        self.on_request = on_request
        self.server = server

    @property
    def server(self) -> str:
        return self._server

    @server.setter
    def server(self, value: str) -> None:
        if "://" not in value:
            value = f"http://{value}"
        self._server = value
        self._base_url = self._build_base_url(value)
        self._is_ssl = self._base_url.scheme == "https"
        self._ssl_context = build_ssl_context(self.ssl_options) if self._is_ssl else None
        if self._is_ssl and not self.ssl_options:
            logger.debug("No ssl_options for %s, server certificate is not verified", value)

    @property
    def is_ssl(self) -> bool:
        return self._is_ssl

    @property
    def ssl_context(self) -> Optional[ssl.SSLContext]:
        return self._ssl_context

    @property
    def base_url(self) -> httpx.URL:
        return self._base_url

    @property
    def has_credentials(self) -> bool:
        return self.username is not None and self.password is not None

    def _build_base_url(self, server: str) -> httpx.URL:
        url = httpx.URL(server)
        if self.has_credentials:
            url = url.copy_merge_params({"u": self.username, "p": self.password})
        return url

    def make_url(self, path: str, params: Optional[Mapping[str, Any]] = None) -> httpx.URL:
        """Return the base URL with ``path`` and every non-``None`` param set."""
        url = self._base_url.copy_with(path=path)
        for key, value in (params or {}).items():
            if value is None:
                continue
            url = url.copy_set_param(key, str(value))
        return url

    def __repr__(self) -> str:
        auth = "auth" if self.has_credentials else "anonymous"
        return f"ConnectionContext({self._server}, {auth})"


def redact(url: httpx.URL) -> str:
    """String form of ``url`` with the password parameter masked."""
    if "p" not in url.params:
        return str(url)
    return str(url.copy_set_param("p", "***"))
