"""Routing — prefix mounting of routable units.

A unit mounted at ``/prefix`` sees requests under that prefix with the
prefix stripped, and passes anything it does not answer back out.
"""

from modserve.routing.mount import Mount, normalize_prefix

__all__ = ["Mount", "normalize_prefix"]
