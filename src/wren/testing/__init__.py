"""Test utilities for wren applications::

    from wren.testing import TestClient, assert_error_response
"""

from wren.testing.assertions import assert_error_response
from wren.testing.client import TestClient

__all__ = ["TestClient", "assert_error_response"]
