"""HTTP dispatch over httpx."""

from __future__ import annotations

from typing import Optional, Union
import logging

import httpx

from .connection import ConnectionContext, redact
from .exceptions import InfluxDBConnectionError
from .models import RawResponse

logger = logging.getLogger(__name__)


class Dispatcher:
    """Sends one request per call; nothing is pooled between calls."""

    def __init__(
        self,
        context: ConnectionContext,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._context = context
        self._transport = transport

    async def request(
        self,
        method: str,
        url: Union[httpx.URL, str],
        body: Optional[str] = None,
    ) -> RawResponse:
        if self._context.on_request is not None:
            self._context.on_request(method, str(url), body)
        logger.debug("%s %s", method, redact(httpx.URL(url)))

        client_kwargs = {"timeout": None}
        if self._transport is not None:
            client_kwargs["transport"] = self._transport
        if self._context.is_ssl:
            client_kwargs["verify"] = self._context.ssl_context

        content = body.encode("utf-8") if body else None
        headers = {"Content-Type": "text/plain; charset=utf-8"} if content else None
        try:
            async with httpx.AsyncClient(**client_kwargs) as client:
                resp = await client.request(method, url, content=content, headers=headers)
        except httpx.HTTPError as exc:
            raise InfluxDBConnectionError(str(exc) or exc.__class__.__name__) from exc

        logger.debug("%s %s -> %s", method, redact(httpx.URL(url)), resp.status_code)
        return RawResponse(status=resp.status_code, headers=dict(resp.headers), body=resp.text)
