"""Test utilities for hark handlers.

    from hark.testing import TestClient, multipart_body
"""

from hark.testing.client import TestClient, TestResponse
from hark.testing.multipart import multipart_body

__all__ = ["TestClient", "TestResponse", "multipart_body"]
