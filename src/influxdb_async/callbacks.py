"""Run an operation and report its outcome to a success/error handler pair."""

from __future__ import annotations

from typing import Any, Awaitable, Callable, TypeVar
import asyncio
import logging

logger = logging.getLogger(__name__)

T = TypeVar("T")

# submitted tasks stay referenced until they finish
_pending: "set[asyncio.Task[Any]]" = set()


def submit(
    operation: Awaitable[T],
    on_success: Callable[[T], Any],
    on_error: Callable[[BaseException], Any],
) -> "asyncio.Task[T]":
    """Schedule ``operation`` on the running loop and return at once.

    When it finishes exactly one handler is called, once: ``on_success``
    with the result or ``on_error`` with the exception. A cancelled task
    calls neither.
    """
    task = asyncio.ensure_future(operation)
    _pending.add(task)
    task.add_done_callback(_pending.discard)

    def _done(fut: "asyncio.Future[T]") -> None:
        if fut.cancelled():
            logger.debug("operation cancelled, no handler called")
            return
        exc = fut.exception()
        if exc is not None:
            on_error(exc)
        else:
            on_success(fut.result())

    task.add_done_callback(_done)
    return task
