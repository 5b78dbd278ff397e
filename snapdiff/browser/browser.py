from __future__ import annotations

import asyncio
import base64
import json
from typing import Any, Mapping

import structlog
from selenium.webdriver.remote.webelement import WebElement

from snapdiff.browser.actions import ActionSequence
from snapdiff.browser.capabilities import resolve_capabilities
from snapdiff.browser.image import Image
from snapdiff.browser.observers import build_observers
from snapdiff.browser.transport import SeleniumTransport, Transport
from snapdiff.config import BrowserConfig
from snapdiff.constants import (
    CLIENT_SCRIPT_NAMESPACE,
    CLIENT_SCRIPTS_DIR,
    CONNECTION_REFUSED,
    DEFAULT_CAPABILITIES,
    MAXIMIZE_BROWSER_NAME,
    NO_SUCH_ELEMENT_STATUS,
)
from snapdiff.exceptions import FailedToLaunchBrowser, GridConnectionRefused, StateError, TransportError

LOG = structlog.get_logger()


def load_client_script(name: str) -> str:
    path = CLIENT_SCRIPTS_DIR / name
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        LOG.exception("Failed to load the client script", path=str(path))
        raise


CLIENT_SCRIPT = load_client_script("snapdiff.js")
COVERAGE_SCRIPT = load_client_script("snapdiff.coverage.js")


class Browser:
    """
    Controls one remote browser session: launch, navigation, element lookup and screenshots.

    Every operation awaits the transport calls it is made of in order. Nothing is retried,
    every failure reaches the caller.
    """

    def __init__(
        self,
        config: BrowserConfig,
        id: str,
        capabilities: Mapping[str, Any] | None = None,
        transport: Transport | None = None,
    ) -> None:
        self.config = config
        self.id = id
        self._capabilities = dict(capabilities or {})
        self._transport = transport or SeleniumTransport(config.grid_url, observers=build_observers(config))
        self._log = LOG.bind(session_id=id)

    @property
    def transport(self) -> Transport:
        return self._transport

    @property
    def capabilities(self) -> dict[str, Any]:
        return resolve_capabilities(DEFAULT_CAPABILITIES, self.config.capabilities, self._capabilities)

    @property
    def browser_name(self) -> str | None:
        return self.capabilities.get("browserName")

    @property
    def version(self) -> str | None:
        capabilities = self.capabilities
        return capabilities.get("version", capabilities.get("browserVersion"))

    def _should_maximize(self) -> bool:
        return self.browser_name == MAXIMIZE_BROWSER_NAME

    # -- Lifecycle -------------------------------------------------------------

    async def launch(self) -> None:
        self._log.info("Launching browser", grid_url=self.config.grid_url, browser_name=self.browser_name)
        try:
            self._transport.configure_http(self.config.http)
            await self._transport.init(self.capabilities)
            if self.config.window_size:
                await self._transport.set_window_size(self.config.window_size.width, self.config.window_size.height)
            if self._should_maximize():
                await self._maximize()
        except TransportError as e:
            if e.code == CONNECTION_REFUSED:
                raise GridConnectionRefused(self.config.grid_url) from e
            # selenium does not tell the different reasons of a failed session apart
            raise FailedToLaunchBrowser(self.id, e.message or str(e)) from e
        self._log.info("Browser launched", browser_name=self.browser_name, version=self.version)

    async def _maximize(self) -> None:
        handle = await self._transport.window_handle()
        await self._transport.maximize(handle)

    async def open(self, url: str) -> None:
        self._log.debug("Opening url", url=url)
        await self._reset_cursor()
        await self._transport.get(url)
        await self._transport.execute(CLIENT_SCRIPT)
        if self.config.coverage:
            await self._transport.execute(COVERAGE_SCRIPT)

    async def _reset_cursor(self) -> None:
        # browsers disagree on where the pointer starts, park it in the top left corner of the body
        body = await self.find_element("body")
        await self._transport.move_to(body, 0, 0)

    async def quit(self) -> None:
        await self._transport.quit()
        self._log.info("Browser session closed")

    # -- Elements --------------------------------------------------------------

    async def find_element(self, selector: str) -> WebElement:
        try:
            return await self._transport.element_by_css_selector(selector)
        except TransportError as e:
            if e.status == NO_SUCH_ELEMENT_STATUS:
                e.selector = selector
            raise

    async def find_by_xpath(self, selector: str) -> WebElement:
        try:
            return await self._transport.element_by_xpath(selector)
        except TransportError as e:
            if e.status == NO_SUCH_ELEMENT_STATUS:
                e.selector = selector
            raise

    async def find_elements(self, selectors: list[str]) -> list[WebElement]:
        return list(await asyncio.gather(*(self.find_element(selector) for selector in selectors)))

    # -- Screenshots -----------------------------------------------------------

    async def prepare_screenshot(self, selectors: list[str], opts: Mapping[str, Any] | None = None) -> Any:
        data = await self._transport.eval(self._prepare_screenshot_command(selectors, opts or {}))
        if not isinstance(data, dict):
            raise StateError(f"{CLIENT_SCRIPT_NAMESPACE}.prepareScreenshot returned {data!r} instead of an object")
        if data.get("error"):
            raise StateError(data.get("message"))
        return data

    @staticmethod
    def _prepare_screenshot_command(selectors: list[str], opts: Mapping[str, Any]) -> str:
        return f"{CLIENT_SCRIPT_NAMESPACE}.prepareScreenshot({json.dumps(selectors)}, {json.dumps(opts)})"

    async def capture_fullscreen_image(self) -> Image:
        screenshot = await self._transport.take_screenshot()
        return Image(base64.b64decode(screenshot))

    def create_action_sequence(self) -> ActionSequence:
        return ActionSequence(self)
