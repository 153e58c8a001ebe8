"""ASGI request pipeline.

The request path is the only place raw ASGI scopes turn into ``Request``
objects. Mounted units and middleware run as one chain whose innermost
link raises ``NotFound``: a request nobody claimed ends as the
dispatcher's own 404.
"""

from collections.abc import Callable, Sequence
from typing import Any

from modserve._internal.asgi import Receive, Scope, Send
from modserve.errors import HTTPError, NotFound
from modserve.http.request import Request
from modserve.middleware.protocol import AnyResponse, Next
from modserve.server.errors import handle_http_error, handle_internal_error
from modserve.server.sender import send_response


async def not_found(request: Request) -> AnyResponse:
    """End of every chain."""
    raise NotFound(f"Nothing serves {request.method} {request.full_path!r}")


def _link(mw: Callable[..., Any], next: Next) -> Next:
    async def call(request: Request) -> AnyResponse:
        return await mw(request, next)

    return call


def build_chain(middleware: Sequence[Callable[..., Any]], endpoint: Next = not_found) -> Next:
    """Fold *middleware* around *endpoint*, first entry outermost."""
    chain = endpoint
    for mw in reversed(middleware):
        chain = _link(mw, chain)
    return chain


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    middleware: tuple[Callable[..., Any], ...],
    error_handlers: dict[int | type, Callable[..., Any]],
    debug: bool,
) -> None:
    """Run one HTTP request through the chain and send the result."""
    if scope["type"] != "http":
        return

    request = Request.from_asgi(scope)
    chain = build_chain(middleware)

    try:
        response = await chain(request)
    except HTTPError as exc:
        response = await handle_http_error(exc, request, error_handlers, debug)
    except Exception as exc:
        response = await handle_internal_error(exc, request, error_handlers, debug)

    await send_response(response, send, head=request.method == "HEAD")
