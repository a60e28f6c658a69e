# tests/conftest.py
"""
Pytest configuration and shared fixtures.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

# Example key secret from the API documentation.
SECRET_B64 = "kQH5HW/8p1uGOVjbgWA7FunAmGO8lsSUXNsu3eow76sz84Q18fWxnyRzBHCd3pd5nE9qa99HAZtuZuj6F1huXg=="
API_KEY = "API_KEY"

# Documented signature example for an AddOrder request.
GOLDEN_PATH = "/0/private/AddOrder"
GOLDEN_FORM = {
    "nonce": "1616492376594",
    "ordertype": "limit",
    "pair": "XBTUSD",
    "price": "37500",
    "type": "buy",
    "volume": "1.25",
}
GOLDEN_ENCODED_FORM = "nonce=1616492376594&ordertype=limit&pair=XBTUSD&price=37500&type=buy&volume=1.25"
GOLDEN_SIGNATURE = "4/dpxb3iT4tp/ZCVEwSnEsLxx0bqyhLpdfOpc6fn7OR8+UClSV5n9E6aSS8MPtnRfp32bAb0nmbRn6H8ndwLUQ=="


@pytest.fixture
def make_response():
    """Factory for mocked aiohttp responses."""

    def _make(status: int = 200, content_type: str | None = "application/json", body: bytes = b""):
        response = MagicMock()
        response.status = status
        response.url = "https://api.kraken.com/0/public/Time"
        response.headers = {"Content-Type": content_type} if content_type is not None else {}
        response.read = AsyncMock(return_value=body)
        response.release = MagicMock()
        return response

    return _make


@pytest.fixture
def mock_session():
    session = MagicMock()
    session.closed = False
    session.request = AsyncMock()
    session.close = AsyncMock()
    return session
