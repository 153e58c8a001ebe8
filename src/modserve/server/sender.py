"""Response -> ASGI ``http.response.start`` / ``http.response.body``."""

from modserve._internal.asgi import Send
from modserve.http.response import Response

# 1xx, 204 and 304 never carry a body.
NO_BODY_STATUSES = frozenset({204, 304})


def body_for(response: Response) -> bytes:
    """The bytes a response may put on the wire for its status."""
    if response.status < 200 or response.status in NO_BODY_STATUSES:
        return b""
    return response.body_bytes


def encode_headers(response: Response, content_length: int) -> list[tuple[bytes, bytes]]:
    """Lower-cased latin-1 header pairs, content type first, length last."""
    pairs = [("content-type", response.content_type), *response.headers]
    pairs.append(("content-length", str(content_length)))
    return [(name.lower().encode("latin-1"), value.encode("latin-1")) for name, value in pairs]


async def send_response(response: Response, send: Send, *, head: bool = False) -> None:
    """Send *response* as one start message and one body message.

    ``head=True`` keeps the headers of the full response (its
    ``content-length`` included) and sends an empty body.
    """
    body = body_for(response)
    await send(
        {
            "type": "http.response.start",
            "status": response.status,
            "headers": encode_headers(response, len(body)),
        }
    )
    await send({"type": "http.response.body", "body": b"" if head else body})
