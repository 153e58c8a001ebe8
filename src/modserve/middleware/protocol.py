"""The shape every routable unit has.

Middleware, mounts and package routers are all the same kind of object:
an async callable taking the request and the rest of the chain. A unit
answers what it owns and hands everything else to ``next``; there is no
base class to inherit from.
"""

from collections.abc import Awaitable, Callable
from typing import Protocol, TypeAlias

from modserve.http.request import Request
from modserve.http.response import Response

# Every unit answers with a plain Response; redirects are Responses too.
AnyResponse: TypeAlias = Response

# The remainder of the chain, ending in the dispatcher's 404
Next: TypeAlias = Callable[[Request], Awaitable[AnyResponse]]


class Middleware(Protocol):
    """Anything callable as ``await unit(request, next)``.

    A plain coroutine function works::

        async def no_store(request: Request, next: Next) -> AnyResponse:
            response = await next(request)
            return response.with_header("Cache-Control", "no-store")

    So does an object with an async ``__call__``, such as ``StaticFiles``
    or the router returned by ``serve_modules()``.
    """

    async def __call__(self, request: Request, next: Next) -> AnyResponse: ...
