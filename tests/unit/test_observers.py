from io import StringIO
from unittest.mock import MagicMock

from rich.console import Console

from snapdiff.browser.browser import Browser
from snapdiff.browser.observers import DebugObserver, build_observers
from snapdiff.browser.transport import SeleniumTransport
from snapdiff.config import BrowserConfig


def _debug_observer() -> tuple[DebugObserver, StringIO]:
    buffer = StringIO()
    console = Console(file=buffer, width=200, color_system=None, highlight=False)
    return DebugObserver(console=console), buffer


def test_debug_observer__command_call() -> None:
    observer, buffer = _debug_observer()

    observer.on_command("CALL", "get('https://example.com')")

    assert " > CALL get('https://example.com')" in buffer.getvalue()


def test_debug_observer__response_serialized_as_json() -> None:
    observer, buffer = _debug_observer()

    observer.on_command("RESPONSE", "init()", {"browserName": "chrome", "browserVersion": "120"})

    assert '{"browserName": "chrome", "browserVersion": "120"}' in buffer.getvalue()


def test_debug_observer__screenshot_redacted() -> None:
    observer, buffer = _debug_observer()

    observer.on_command("RESPONSE", "take_screenshot()", "iVBORw0KGgoAAAANSUhEUgAA")

    output = buffer.getvalue()
    assert "<binary-data>" in output
    assert "iVBORw0KGgo" not in output


def test_debug_observer__screenshot_call_not_redacted() -> None:
    observer, buffer = _debug_observer()

    observer.on_command("CALL", "take_screenshot()")

    assert "<binary-data>" not in buffer.getvalue()


def test_debug_observer__status_and_connection() -> None:
    observer, buffer = _debug_observer()

    observer.on_status("Driving the browser on session: abc123")
    observer.on_connection("ECONNREFUSED", "Connection refused")

    output = buffer.getvalue()
    assert "Driving the browser on session: abc123" in output
    assert " ! ECONNREFUSED: Connection refused" in output


def test_debug_observer__http_with_markup_like_text() -> None:
    observer, buffer = _debug_observer()

    observer.on_http("POST", "/wd/hub/session/abc/element", '{"value": "[data-test=x]"}')

    output = buffer.getvalue()
    assert " > POST /wd/hub/session/abc/element" in output
    assert "[data-test=x]" in output


def test_build_observers() -> None:
    assert build_observers(BrowserConfig(grid_url="http://grid", debug=False)) == []

    observers = build_observers(BrowserConfig(grid_url="http://grid", debug=True))
    assert len(observers) == 1
    assert isinstance(observers[0], DebugObserver)


def test_browser__default_transport_wiring() -> None:
    browser = Browser(BrowserConfig(grid_url="http://grid:4444/wd/hub", debug=True), "b1")

    assert isinstance(browser.transport, SeleniumTransport)
    assert browser.transport.grid_url == "http://grid:4444/wd/hub"
    assert [type(observer) for observer in browser.transport.observers] == [DebugObserver]


def test_browser__no_observers_without_debug() -> None:
    browser = Browser(BrowserConfig(grid_url="http://grid", debug=False), "b1")

    assert browser.transport.observers == []


def test_transport_emit__observer_failure_is_contained() -> None:
    failing = MagicMock()
    failing.on_status.side_effect = RuntimeError("observer broke")
    healthy = MagicMock()
    transport = SeleniumTransport("http://grid", observers=[failing, healthy])

    transport._emit("on_status", "Ending the browser session")

    healthy.on_status.assert_called_once_with("Ending the browser session")
