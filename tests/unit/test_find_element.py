import asyncio
from unittest.mock import MagicMock

import pytest

from snapdiff.browser.browser import Browser
from snapdiff.exceptions import TransportError


@pytest.mark.asyncio
async def test_find_element__returns_handle(browser: Browser, transport: MagicMock) -> None:
    element = MagicMock(name="element")
    transport.element_by_css_selector.return_value = element

    assert await browser.find_element(".header") is element
    transport.element_by_css_selector.assert_awaited_once_with(".header")


@pytest.mark.asyncio
async def test_find_element__not_found_attaches_selector(browser: Browser, transport: MagicMock) -> None:
    error = TransportError("no such element: Unable to locate element", status=7)
    transport.element_by_css_selector.side_effect = error

    with pytest.raises(TransportError) as exc_info:
        await browser.find_element(".missing")

    assert exc_info.value is error
    assert exc_info.value.selector == ".missing"
    assert exc_info.value.status == 7


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [10, 13, 32, None])
async def test_find_element__other_errors_untouched(browser: Browser, transport: MagicMock, status: int | None) -> None:
    error = TransportError("boom", status=status)
    transport.element_by_css_selector.side_effect = error

    with pytest.raises(TransportError) as exc_info:
        await browser.find_element(".thing")

    assert exc_info.value is error
    assert exc_info.value.selector is None


@pytest.mark.asyncio
async def test_find_by_xpath__returns_handle(browser: Browser, transport: MagicMock) -> None:
    element = MagicMock(name="element")
    transport.element_by_xpath.return_value = element

    assert await browser.find_by_xpath("//div[@id='x']") is element
    transport.element_by_xpath.assert_awaited_once_with("//div[@id='x']")
    transport.element_by_css_selector.assert_not_awaited()


@pytest.mark.asyncio
async def test_find_by_xpath__not_found_attaches_selector(browser: Browser, transport: MagicMock) -> None:
    transport.element_by_xpath.side_effect = TransportError("no such element", status=7)

    with pytest.raises(TransportError) as exc_info:
        await browser.find_by_xpath("//nav")

    assert exc_info.value.selector == "//nav"


@pytest.mark.asyncio
async def test_find_by_xpath__other_errors_untouched(browser: Browser, transport: MagicMock) -> None:
    transport.element_by_xpath.side_effect = TransportError("invalid selector", status=32)

    with pytest.raises(TransportError) as exc_info:
        await browser.find_by_xpath("//[")

    assert exc_info.value.selector is None


@pytest.mark.asyncio
async def test_find_elements__keeps_order(browser: Browser, transport: MagicMock) -> None:
    elements = {".a": MagicMock(name="a"), ".b": MagicMock(name="b"), ".c": MagicMock(name="c")}
    transport.element_by_css_selector.side_effect = lambda selector: elements[selector]

    found = await browser.find_elements([".a", ".b", ".c"])

    assert found == [elements[".a"], elements[".b"], elements[".c"]]


@pytest.mark.asyncio
async def test_find_elements__empty(browser: Browser, transport: MagicMock) -> None:
    assert await browser.find_elements([]) == []
    transport.element_by_css_selector.assert_not_awaited()


@pytest.mark.asyncio
async def test_find_elements__failure_attaches_selector(browser: Browser, transport: MagicMock) -> None:
    def lookup(selector: str) -> MagicMock:
        if selector == ".missing":
            raise TransportError("no such element", status=7)
        return MagicMock()

    transport.element_by_css_selector.side_effect = lookup

    with pytest.raises(TransportError) as exc_info:
        await browser.find_elements([".a", ".missing"])

    assert exc_info.value.selector == ".missing"


@pytest.mark.asyncio
async def test_find_elements__lookups_in_flight_together(browser: Browser, transport: MagicMock) -> None:
    selectors = [".a", ".b", ".c"]
    started: list[str] = []
    all_started = asyncio.Event()

    async def lookup(selector: str) -> str:
        started.append(selector)
        if len(started) == len(selectors):
            all_started.set()
        # returns only once every lookup has started
        await all_started.wait()
        return f"element{selector}"

    transport.element_by_css_selector.side_effect = lookup

    found = await asyncio.wait_for(browser.find_elements(selectors), timeout=2)

    assert found == ["element.a", "element.b", "element.c"]
    assert sorted(started) == selectors
