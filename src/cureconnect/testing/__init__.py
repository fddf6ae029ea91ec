"""Test utilities for CureConnect::

    from cureconnect.testing import TestClient
"""

from cureconnect.testing.client import TestClient

__all__ = ["TestClient"]
