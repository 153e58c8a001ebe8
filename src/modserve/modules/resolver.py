"""Redirect resolution for matched module routes.

Module files are never streamed from their virtual route path. Relative
imports inside them (``import "./utils.js"``) resolve against the URL the
browser ends up on, so the browser has to land on the real file path.
"""

import posixpath

from modserve.http.response import Redirect, Response
from modserve.modules.rules import RuleMatch


def join_url(base_url: str, target: str) -> str:
    """Join *target* onto *base_url* and normalize ``.`` / ``..`` segments.

    Examples::

        join_url("/vendor/foo", "index.js")        -> "/vendor/foo/index.js"
        join_url("/vendor/foo", "./dist/x.min.js") -> "/vendor/foo/dist/x.min.js"
    """
    # An absolute target is still taken relative to the base.
    joined = posixpath.normpath(posixpath.join(base_url or "/", target.lstrip("/")))
    # normpath keeps a leading "//" (POSIX implementation-defined root).
    if joined.startswith("//"):
        joined = "/" + joined.lstrip("/")
    return joined


def resolve_redirect(match: RuleMatch, base_url: str, *, status: int = 302) -> Response:
    """Build the redirect for an entry, exact-file or glob match.

    Raises ``ValueError`` for a directory-delegation match: those are
    served in place and never redirected.
    """
    if not match.redirects:
        msg = f"{type(match.rule).__name__} is served statically, not redirected"
        raise ValueError(msg)
    return Redirect(url=join_url(base_url, match.target), status=status).to_response()
