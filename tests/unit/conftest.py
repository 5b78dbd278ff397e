from __future__ import annotations

import base64
from io import BytesIO
from unittest.mock import MagicMock

import pytest
from PIL import Image as PILImage

from snapdiff.browser.browser import Browser
from snapdiff.browser.transport import SeleniumTransport
from snapdiff.config import BrowserConfig
from tests.unit.helpers import GRID_URL


@pytest.fixture
def transport() -> MagicMock:
    # coroutine verbs become AsyncMocks, configure_http stays a plain MagicMock
    return MagicMock(spec=SeleniumTransport)


@pytest.fixture
def config() -> BrowserConfig:
    return BrowserConfig(grid_url=GRID_URL)


@pytest.fixture
def browser(config: BrowserConfig, transport: MagicMock) -> Browser:
    return Browser(config, "chrome-desktop", {"browserName": "chrome", "version": "120"}, transport=transport)


@pytest.fixture
def png_bytes() -> bytes:
    buffer = BytesIO()
    PILImage.new("RGB", (3, 2), color=(255, 0, 0)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def png_base64(png_bytes: bytes) -> str:
    return base64.b64encode(png_bytes).decode("ascii")
