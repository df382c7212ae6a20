"""Pytest configuration and fixtures for map exporter tests."""

import sys
from io import BytesIO
from pathlib import Path

import pytest

# Add src directory to path for imports
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from PIL import Image  # noqa: E402

from domain.models import TileSourceConfig  # noqa: E402


def make_png(color=(255, 0, 0), size=(256, 256), mode='RGB') -> bytes:
    """Encode a solid-colour PNG tile."""
    buf = BytesIO()
    Image.new(mode, size, color).save(buf, format='PNG')
    return buf.getvalue()


class FakeResponse:
    def __init__(self, status: int = 200, body: bytes = b'', exc: Exception | None = None):
        self.status = status
        self._body = body
        self._exc = exc

    async def __aenter__(self):
        if self._exc is not None:
            raise self._exc
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    async def read(self) -> bytes:
        return self._body


class FakeSession:
    """Stand-in for aiohttp.ClientSession; responses are chosen per URL."""

    def __init__(self, responder):
        self._responder = responder
        self.requested: list[str] = []
        self.timeouts: list[object] = []

    def get(self, url, timeout=None):
        self.requested.append(url)
        self.timeouts.append(timeout)
        return self._responder(url)


@pytest.fixture
def test_source():
    return TileSourceConfig(
        url_template='https://{s}.tiles.test/{z}/{x}/{y}{r}.png',
        attribution='test',
        display_name='Test tiles',
    )


@pytest.fixture
def ok_session():
    """Every URL answers with a valid 256x256 PNG."""
    png = make_png()
    return FakeSession(lambda url: FakeResponse(200, png))
