"""Test utilities for modserve applications.

::

    from modserve.testing import TestClient, assert_redirects_to
"""

from modserve.testing.assertions import assert_not_found, assert_redirects_to
from modserve.testing.client import TestClient

__all__ = [
    "TestClient",
    "assert_not_found",
    "assert_redirects_to",
]
