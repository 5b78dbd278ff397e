from __future__ import annotations

import asyncio
import errno
from typing import Any, Callable, Mapping, Protocol, TypeVar
from urllib.parse import urlparse

import structlog
from selenium import webdriver
from selenium.common.exceptions import (
    ElementNotVisibleException,
    InvalidElementStateException,
    InvalidSelectorException,
    JavascriptException,
    MoveTargetOutOfBoundsException,
    NoAlertPresentException,
    NoSuchElementException,
    NoSuchFrameException,
    NoSuchWindowException,
    SessionNotCreatedException,
    StaleElementReferenceException,
    TimeoutException,
    UnexpectedAlertPresentException,
    WebDriverException,
)
from selenium.webdriver.common.action_chains import ActionChains
from selenium.webdriver.common.actions.action_builder import ActionBuilder
from selenium.webdriver.common.actions.pointer_actions import PointerActions
from selenium.webdriver.common.by import By
from selenium.webdriver.common.options import ArgOptions
from selenium.webdriver.remote.client_config import ClientConfig
from selenium.webdriver.remote.remote_connection import RemoteConnection
from selenium.webdriver.remote.webelement import WebElement
from selenium.webdriver.support import expected_conditions as EC
from selenium.webdriver.support.ui import WebDriverWait
from urllib3.exceptions import HTTPError as Urllib3HTTPError

from snapdiff import constants
from snapdiff.browser.observers import TransportObserver
from snapdiff.config import HttpOptions
from snapdiff.exceptions import TransportError

LOG = structlog.get_logger()

T = TypeVar("T")

# checked in order, subclasses before their bases
_STATUS_BY_EXCEPTION: tuple[tuple[type[WebDriverException], int], ...] = (
    (InvalidSelectorException, constants.INVALID_SELECTOR_STATUS),
    (NoSuchElementException, constants.NO_SUCH_ELEMENT_STATUS),
    (NoSuchFrameException, constants.NO_SUCH_FRAME_STATUS),
    (StaleElementReferenceException, constants.STALE_ELEMENT_REFERENCE_STATUS),
    (ElementNotVisibleException, constants.ELEMENT_NOT_VISIBLE_STATUS),
    (InvalidElementStateException, constants.INVALID_ELEMENT_STATE_STATUS),
    (JavascriptException, constants.JAVASCRIPT_ERROR_STATUS),
    (TimeoutException, constants.TIMEOUT_STATUS),
    (NoSuchWindowException, constants.NO_SUCH_WINDOW_STATUS),
    (UnexpectedAlertPresentException, constants.UNEXPECTED_ALERT_OPEN_STATUS),
    (NoAlertPresentException, constants.NO_ALERT_OPEN_STATUS),
    (SessionNotCreatedException, constants.SESSION_NOT_CREATED_STATUS),
    (MoveTargetOutOfBoundsException, constants.MOVE_TARGET_OUT_OF_BOUNDS_STATUS),
)

_LEGACY_CAPABILITY_NAMES = {"version": "browserVersion", "platform": "platformName"}
# JSON wire protocol hints that W3C endpoints reject, every W3C session supports them anyway
_LEGACY_ONLY_CAPABILITIES = frozenset(
    {"takesScreenshot", "javascriptEnabled", "cssSelectorsEnabled", "handlesAlerts", "nativeEvents", "rotatable"}
)


def webdriver_status(error: WebDriverException) -> int:
    for exception_type, status in _STATUS_BY_EXCEPTION:
        if isinstance(error, exception_type):
            return status
    return constants.UNKNOWN_ERROR_STATUS


def is_connection_refused(error: BaseException) -> bool:
    """
    Walk the exception chain (including urllib3's ``reason``) looking for a refused connection.

    This is as precise as it gets: neither selenium nor the endpoint report why a session
    could not be created beyond the socket level error.
    """
    pending: list[BaseException] = [error]
    seen: set[int] = set()
    while pending:
        current = pending.pop()
        if id(current) in seen:
            continue
        seen.add(id(current))

        if isinstance(current, ConnectionRefusedError) or getattr(current, "errno", None) == errno.ECONNREFUSED:
            return True
        if "Connection refused" in str(current):
            return True
        for nested in (current.__cause__, current.__context__, getattr(current, "reason", None)):
            if isinstance(nested, BaseException):
                pending.append(nested)
    return False


def connection_error_code(error: BaseException) -> str:
    if is_connection_refused(error):
        return constants.CONNECTION_REFUSED
    return type(error).__name__


def to_w3c_capabilities(capabilities: Mapping[str, Any]) -> dict[str, Any]:
    w3c_capabilities: dict[str, Any] = {}
    for name, value in capabilities.items():
        if name in _LEGACY_ONLY_CAPABILITIES:
            continue
        w3c_capabilities[_LEGACY_CAPABILITY_NAMES.get(name, name)] = value
    return w3c_capabilities


_ELEMENT_GEOMETRY_SCRIPT = (
    "var rect = arguments[0].getBoundingClientRect();"
    "return {left: rect.left, top: rect.top,"
    " viewportWidth: document.documentElement.clientWidth || window.innerWidth,"
    " viewportHeight: document.documentElement.clientHeight || window.innerHeight};"
)


def viewport_point(geometry: Mapping[str, float], x_offset: int | None, y_offset: int | None) -> tuple[int, int]:
    """
    Translate an offset from the top left corner of an element into a point inside the viewport.

    ``geometry`` holds the element's bounding client rect ``left``/``top`` and the viewport size. Points that
    fall outside the viewport (an element taller than the window, or scrolled past) are clamped to its edge.
    """
    x = geometry["left"] + (x_offset or 0)
    y = geometry["top"] + (y_offset or 0)
    max_x = max(int(geometry["viewportWidth"]) - 1, 0)
    max_y = max(int(geometry["viewportHeight"]) - 1, 0)
    return min(max(int(x), 0), max_x), min(max(int(y), 0), max_y)


def _preview(script: str, limit: int = 60) -> str:
    script = " ".join(script.split())
    return script if len(script) <= limit else script[:limit] + "..."


class Transport(Protocol):
    """
    The asynchronous channel to a remote WebDriver endpoint, keyed by protocol verbs.
    A transport drives exactly one session.
    """

    def configure_http(self, options: HttpOptions | None) -> None: ...

    async def init(self, capabilities: Mapping[str, Any]) -> dict[str, Any]: ...

    async def set_window_size(self, width: int, height: int) -> None: ...

    async def window_handle(self) -> str: ...

    async def maximize(self, handle: str) -> None: ...

    async def get(self, url: str) -> None: ...

    async def element_by_css_selector(self, selector: str) -> WebElement: ...

    async def element_by_xpath(self, selector: str) -> WebElement: ...

    async def move_to(self, element: WebElement, x_offset: int | None = None, y_offset: int | None = None) -> None: ...

    async def click(self, button: int = 0) -> None: ...

    async def double_click(self) -> None: ...

    async def button_down(self, button: int = 0) -> None: ...

    async def button_up(self, button: int = 0) -> None: ...

    async def send_keys(self, keys: str, element: WebElement | None = None) -> None: ...

    async def wait_for_visible(self, selector: str, timeout_ms: int) -> None: ...

    async def wait_for_hidden(self, selector: str, timeout_ms: int) -> None: ...

    async def wait_for_condition(self, expression: str, timeout_ms: int) -> None: ...

    async def execute(self, script: str, *args: Any) -> Any: ...

    async def eval(self, expression: str) -> Any: ...

    async def take_screenshot(self) -> str: ...

    async def quit(self) -> None: ...


class TracingRemoteConnection(RemoteConnection):
    """Selenium remote connection which reports every wire request to the transport observers."""

    def __init__(self, client_config: ClientConfig, emit: Callable[..., None]) -> None:
        super().__init__(client_config=client_config)
        self._emit = emit

    def _request(self, method: str, url: str, body: str | None = None) -> dict:
        self._emit("on_http", method, urlparse(url).path, body)
        try:
            return super()._request(method, url, body)
        except (Urllib3HTTPError, OSError) as e:
            self._emit("on_connection", connection_error_code(e), str(e))
            raise


class SeleniumTransport:
    """
    Transport on top of Selenium's Remote WebDriver.

    Selenium is blocking, every verb runs its calls in a worker thread so that the session
    controller can await them.
    """

    def __init__(self, grid_url: str, observers: list[TransportObserver] | None = None) -> None:
        self.grid_url = grid_url
        self.observers: list[TransportObserver] = list(observers or [])
        self._http_options = HttpOptions()
        self._webdriver: webdriver.Remote | None = None

    @property
    def driver(self) -> webdriver.Remote:
        if self._webdriver is None:
            raise TransportError("No WebDriver session, init() has not been called", code="ENOSESSION")
        return self._webdriver

    def _emit(self, event: str, *args: Any) -> None:
        for observer in self.observers:
            try:
                getattr(observer, event)(*args)
            except Exception:
                LOG.warning(
                    "Transport observer failed",
                    observer=type(observer).__name__,
                    transport_event=event,
                    exc_info=True,
                )

    async def _call(self, command: str, func: Callable[..., T], *args: Any) -> T:
        self._emit("on_command", "CALL", command)
        try:
            result = await asyncio.to_thread(func, *args)
        except WebDriverException as e:
            raise TransportError(e.msg or str(e), status=webdriver_status(e)) from e
        except (Urllib3HTTPError, OSError) as e:
            raise TransportError(str(e), code=connection_error_code(e)) from e
        self._emit("on_command", "RESPONSE", command, result)
        return result

    # -- Session ---------------------------------------------------------------

    def configure_http(self, options: HttpOptions | None) -> None:
        self._http_options = options or HttpOptions()

    def _client_config(self) -> ClientConfig:
        return ClientConfig(
            remote_server_addr=self.grid_url,
            keep_alive=self._http_options.keep_alive,
            ignore_certificates=self._http_options.ignore_certificates,
            timeout=self._http_options.timeout,
        )

    def _start_session(self, capabilities: Mapping[str, Any]) -> dict[str, Any]:
        options = ArgOptions()
        for name, value in to_w3c_capabilities(capabilities).items():
            options.set_capability(name, value)
        connection = TracingRemoteConnection(self._client_config(), self._emit)
        self._webdriver = webdriver.Remote(command_executor=connection, options=options)
        return dict(self._webdriver.capabilities)

    async def init(self, capabilities: Mapping[str, Any]) -> dict[str, Any]:
        negotiated = await self._call("init()", self._start_session, capabilities)
        self._emit("on_status", f"Driving the browser on session: {self.driver.session_id}")
        return negotiated

    async def quit(self) -> None:
        if self._webdriver is None:
            return
        await self._call("quit()", self.driver.quit)
        self._emit("on_status", "Ending the browser session")
        self._webdriver = None

    # -- Window ----------------------------------------------------------------

    async def set_window_size(self, width: int, height: int) -> None:
        await self._call(f"set_window_size({width}, {height})", self.driver.set_window_size, width, height)

    async def window_handle(self) -> str:
        return await self._call("window_handle()", lambda: self.driver.current_window_handle)

    def _maximize(self, handle: str) -> None:
        if self.driver.current_window_handle != handle:
            self.driver.switch_to.window(handle)
        self.driver.maximize_window()

    async def maximize(self, handle: str) -> None:
        await self._call(f"maximize({handle!r})", self._maximize, handle)

    # -- Navigation and scripts ------------------------------------------------

    async def get(self, url: str) -> None:
        await self._call(f"get({url!r})", self.driver.get, url)

    async def execute(self, script: str, *args: Any) -> Any:
        return await self._call(f"execute({_preview(script)!r})", self.driver.execute_script, script, *args)

    async def eval(self, expression: str) -> Any:
        return await self._call(
            f"eval({_preview(expression)!r})", self.driver.execute_script, f"return {expression};"
        )

    async def take_screenshot(self) -> str:
        return await self._call(constants.SCREENSHOT_COMMAND, self.driver.get_screenshot_as_base64)

    # -- Elements --------------------------------------------------------------

    async def element_by_css_selector(self, selector: str) -> WebElement:
        return await self._call(
            f"element_by_css_selector({selector!r})", self.driver.find_element, By.CSS_SELECTOR, selector
        )

    async def element_by_xpath(self, selector: str) -> WebElement:
        return await self._call(f"element_by_xpath({selector!r})", self.driver.find_element, By.XPATH, selector)

    async def wait_for_visible(self, selector: str, timeout_ms: int) -> None:
        condition = EC.visibility_of_element_located((By.CSS_SELECTOR, selector))
        await self._call(f"wait_for_visible({selector!r}, {timeout_ms})", self._wait, condition, timeout_ms)

    async def wait_for_hidden(self, selector: str, timeout_ms: int) -> None:
        condition = EC.invisibility_of_element_located((By.CSS_SELECTOR, selector))
        await self._call(f"wait_for_hidden({selector!r}, {timeout_ms})", self._wait, condition, timeout_ms)

    async def wait_for_condition(self, expression: str, timeout_ms: int) -> None:
        script = f"return Boolean({expression});"
        await self._call(
            f"wait_for_condition({_preview(expression)!r}, {timeout_ms})",
            self._wait,
            lambda driver: driver.execute_script(script),
            timeout_ms,
        )

    def _wait(self, condition: Callable[[Any], Any], timeout_ms: int) -> None:
        WebDriverWait(self.driver, timeout_ms / 1000).until(condition)

    # -- Pointer and keyboard --------------------------------------------------

    def _move_to(self, element: WebElement, x_offset: int | None, y_offset: int | None) -> None:
        if x_offset is None and y_offset is None:
            ActionChains(self.driver).move_to_element(element).perform()
            return
        # offsets are relative to the top left corner of the element, the pointer moves in viewport coordinates
        geometry = self.driver.execute_script(_ELEMENT_GEOMETRY_SCRIPT, element)
        x, y = viewport_point(geometry, x_offset, y_offset)
        builder = ActionBuilder(self.driver)
        builder.pointer_action.move_to_location(x, y)
        builder.perform()

    async def move_to(self, element: WebElement, x_offset: int | None = None, y_offset: int | None = None) -> None:
        await self._call(f"move_to({x_offset}, {y_offset})", self._move_to, element, x_offset, y_offset)

    def _pointer(self, build: Callable[[PointerActions], Any]) -> None:
        builder = ActionBuilder(self.driver)
        build(builder.pointer_action)
        builder.perform()

    async def click(self, button: int = 0) -> None:
        await self._call(f"click({button})", self._pointer, lambda p: p.pointer_down(button).pointer_up(button))

    async def double_click(self) -> None:
        await self._call("double_click()", self._pointer, lambda p: p.double_click())

    async def button_down(self, button: int = 0) -> None:
        await self._call(f"button_down({button})", self._pointer, lambda p: p.pointer_down(button))

    async def button_up(self, button: int = 0) -> None:
        await self._call(f"button_up({button})", self._pointer, lambda p: p.pointer_up(button))

    def _send_keys(self, keys: str, element: WebElement | None) -> None:
        if element is not None:
            element.send_keys(keys)
        else:
            ActionChains(self.driver).send_keys(keys).perform()

    async def send_keys(self, keys: str, element: WebElement | None = None) -> None:
        await self._call(f"send_keys({keys!r})", self._send_keys, keys, element)
