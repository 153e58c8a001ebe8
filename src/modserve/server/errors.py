"""Turn exceptions raised inside the chain into responses.

``HTTPError`` subclasses become their status code; anything else is a
500 and is logged with its traceback. Handlers registered with
``@app.error(...)`` take precedence over the plain-text defaults.
"""

import inspect
import logging
from collections.abc import Callable
from typing import Any, TypeAlias

from modserve.errors import HTTPError
from modserve.http.request import Request
from modserve.http.response import Redirect, Response

logger = logging.getLogger("modserve.server")

ErrorHandlers: TypeAlias = dict[int | type, Callable[..., Any]]


def to_response(value: Any) -> Response:
    """Coerce an error handler's return value to a Response."""
    match value:
        case Response():
            return value
        case Redirect():
            return value.to_response()
        case str():
            return Response(body=value)
        case bytes():
            return Response(body=value, content_type="application/octet-stream")
        case _:
            msg = f"Cannot convert {type(value).__name__} to a Response"
            raise TypeError(msg)


async def call_error_handler(
    handler: Callable[..., Any],
    request: Request,
    exc: Exception,
) -> Response:
    """Call *handler* with as many of ``(request, exc)`` as it accepts."""
    arity = len(inspect.signature(handler).parameters)
    result = handler(*(request, exc)[: min(arity, 2)])
    if inspect.isawaitable(result):
        result = await result
    return to_response(result)


def find_handler(handlers: ErrorHandlers, exc: Exception, status: int) -> Callable[..., Any] | None:
    """Most specific first: the status code, then the exception's type chain."""
    if status in handlers:
        return handlers[status]
    for cls in type(exc).__mro__:
        if cls in handlers:
            return handlers[cls]
    return None


async def handle_http_error(
    exc: HTTPError,
    request: Request,
    error_handlers: ErrorHandlers,
    debug: bool,
) -> Response:
    """Answer an ``HTTPError`` with its status."""
    logger.debug("%d %s %s: %s", exc.status, request.method, request.full_path, exc.detail)

    handler = find_handler(error_handlers, exc, exc.status)
    if handler is not None:
        response = await call_error_handler(handler, request, exc)
        # A handler that did not pick a status keeps the error's
        return response.with_status(exc.status) if response.status == 200 else response

    body = f"{exc.status}: {exc.detail}" if debug and exc.detail else exc.detail or f"Error {exc.status}"
    response = Response(body=body, status=exc.status)
    return response.with_headers(dict(exc.headers)) if exc.headers else response


async def handle_internal_error(
    exc: Exception,
    request: Request,
    error_handlers: ErrorHandlers,
    debug: bool,
) -> Response:
    """Answer an unexpected exception with a 500."""
    logger.exception("500 %s %s", request.method, request.full_path)

    handler = find_handler(error_handlers, exc, 500)
    if handler is not None:
        return await call_error_handler(handler, request, exc)

    body = "Internal Server Error"
    if debug:
        body += f"\n\n{type(exc).__name__}: {exc}"
    return Response(body=body, status=500)
