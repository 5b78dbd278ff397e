from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Awaitable, Callable

import structlog
from selenium.webdriver.remote.webelement import WebElement

from snapdiff.constants import DEFAULT_WAIT_TIMEOUT_MS, NO_SUCH_ELEMENT_STATUS, TIMEOUT_STATUS
from snapdiff.exceptions import ElementNotFoundForAction, TransportError, WaitTimeoutExceeded

if TYPE_CHECKING:
    from snapdiff.browser.browser import Browser

LOG = structlog.get_logger()

Step = Callable[[], Awaitable[None]]

MOUSE_BUTTONS = (0, 1, 2)


def _check_selector(selector: object, action: str) -> str:
    if not isinstance(selector, str):
        raise TypeError(f"{action} accepts only a css selector string, got {type(selector).__name__}")
    return selector


def _check_timeout(timeout: object, action: str) -> int:
    if not isinstance(timeout, int) or isinstance(timeout, bool) or timeout < 0:
        raise TypeError(f"{action} timeout must be a non negative number of milliseconds")
    return timeout


def _check_button(button: object, action: str) -> int:
    if button not in MOUSE_BUTTONS:
        raise TypeError(f"{action} button must be one of {MOUSE_BUTTONS}, got {button!r}")
    return button  # type: ignore[return-value]


class ActionSequence:
    """
    Builds a list of user interaction steps and runs them against a browser.

    Arguments are checked when a step is added, selectors are resolved when the sequence
    is performed. Every builder method returns the sequence itself so calls can be chained.
    """

    def __init__(self, browser: Browser) -> None:
        self.browser = browser
        self._steps: list[tuple[str, Step]] = []

    def __len__(self) -> int:
        return len(self._steps)

    @property
    def step_names(self) -> list[str]:
        return [name for name, _ in self._steps]

    def _add(self, name: str, step: Step) -> ActionSequence:
        self._steps.append((name, step))
        return self

    async def perform(self) -> None:
        for name, step in self._steps:
            LOG.debug("Performing action", action=name, session_id=self.browser.id)
            await step()

    async def _find(self, selector: str, action: str) -> WebElement:
        try:
            return await self.browser.find_element(selector)
        except TransportError as e:
            if e.status == NO_SUCH_ELEMENT_STATUS:
                raise ElementNotFoundForAction(action, selector) from e
            raise

    async def _wait(self, wait: Awaitable[None], condition: str, timeout: int) -> None:
        try:
            await wait
        except TransportError as e:
            if e.status == TIMEOUT_STATUS:
                raise WaitTimeoutExceeded(condition, timeout) from e
            raise

    # -- Waiting ---------------------------------------------------------------

    def wait(self, milliseconds: int) -> ActionSequence:
        milliseconds = _check_timeout(milliseconds, "wait")
        return self._add("wait", lambda: asyncio.sleep(milliseconds / 1000))

    def wait_for_element_to_show(self, selector: str, timeout: int = DEFAULT_WAIT_TIMEOUT_MS) -> ActionSequence:
        selector = _check_selector(selector, "wait_for_element_to_show")
        timeout = _check_timeout(timeout, "wait_for_element_to_show")

        async def step() -> None:
            transport = self.browser.transport
            await self._wait(transport.wait_for_visible(selector, timeout), f"element {selector} is shown", timeout)

        return self._add("wait_for_element_to_show", step)

    def wait_for_element_to_hide(self, selector: str, timeout: int = DEFAULT_WAIT_TIMEOUT_MS) -> ActionSequence:
        selector = _check_selector(selector, "wait_for_element_to_hide")
        timeout = _check_timeout(timeout, "wait_for_element_to_hide")

        async def step() -> None:
            transport = self.browser.transport
            await self._wait(transport.wait_for_hidden(selector, timeout), f"element {selector} is hidden", timeout)

        return self._add("wait_for_element_to_hide", step)

    def wait_for_js_condition(self, expression: str, timeout: int = DEFAULT_WAIT_TIMEOUT_MS) -> ActionSequence:
        if not isinstance(expression, str):
            raise TypeError("wait_for_js_condition accepts only a javascript expression string")
        timeout = _check_timeout(timeout, "wait_for_js_condition")

        async def step() -> None:
            transport = self.browser.transport
            await self._wait(transport.wait_for_condition(expression, timeout), expression, timeout)

        return self._add("wait_for_js_condition", step)

    # -- Mouse -----------------------------------------------------------------

    def click(self, selector: str, button: int = 0) -> ActionSequence:
        selector = _check_selector(selector, "click")
        button = _check_button(button, "click")

        async def step() -> None:
            element = await self._find(selector, "click")
            await self.browser.transport.move_to(element)
            await self.browser.transport.click(button)

        return self._add("click", step)

    def double_click(self, selector: str) -> ActionSequence:
        selector = _check_selector(selector, "double_click")

        async def step() -> None:
            element = await self._find(selector, "double_click")
            await self.browser.transport.move_to(element)
            await self.browser.transport.double_click()

        return self._add("double_click", step)

    def mouse_down(self, selector: str, button: int = 0) -> ActionSequence:
        selector = _check_selector(selector, "mouse_down")
        button = _check_button(button, "mouse_down")

        async def step() -> None:
            element = await self._find(selector, "mouse_down")
            await self.browser.transport.move_to(element)
            await self.browser.transport.button_down(button)

        return self._add("mouse_down", step)

    def mouse_up(self, selector: str | None = None, button: int = 0) -> ActionSequence:
        if selector is not None:
            _check_selector(selector, "mouse_up")
        button = _check_button(button, "mouse_up")

        async def step() -> None:
            if selector is not None:
                element = await self._find(selector, "mouse_up")
                await self.browser.transport.move_to(element)
            await self.browser.transport.button_up(button)

        return self._add("mouse_up", step)

    def mouse_move(self, selector: str, offset: tuple[int, int] | None = None) -> ActionSequence:
        selector = _check_selector(selector, "mouse_move")
        if offset is not None and (len(offset) != 2 or not all(isinstance(v, int) for v in offset)):
            raise TypeError("mouse_move offset must be a pair of integers (x, y)")

        async def step() -> None:
            element = await self._find(selector, "mouse_move")
            if offset is None:
                await self.browser.transport.move_to(element)
            else:
                await self.browser.transport.move_to(element, offset[0], offset[1])

        return self._add("mouse_move", step)

    # -- Keyboard and page -----------------------------------------------------

    def send_keys(self, keys: str, selector: str | None = None) -> ActionSequence:
        if not isinstance(keys, str):
            raise TypeError("send_keys accepts only a string of keys")
        if selector is not None:
            _check_selector(selector, "send_keys")

        async def step() -> None:
            element = await self._find(selector, "send_keys") if selector is not None else None
            await self.browser.transport.send_keys(keys, element)

        return self._add("send_keys", step)

    def focus(self, selector: str) -> ActionSequence:
        selector = _check_selector(selector, "focus")

        async def step() -> None:
            element = await self._find(selector, "focus")
            await self.browser.transport.execute("arguments[0].focus();", element)

        return self._add("focus", step)

    def execute_js(self, script: str) -> ActionSequence:
        if not isinstance(script, str):
            raise TypeError("execute_js accepts only a javascript string")

        async def step() -> None:
            await self.browser.transport.execute(script)

        return self._add("execute_js", step)

    def set_window_size(self, width: int, height: int) -> ActionSequence:
        if not all(isinstance(v, int) and not isinstance(v, bool) and v > 0 for v in (width, height)):
            raise TypeError("set_window_size accepts only positive integer width and height")

        async def step() -> None:
            await self.browser.transport.set_window_size(width, height)

        return self._add("set_window_size", step)
