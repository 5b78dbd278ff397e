from __future__ import annotations

import asyncio
import uuid
from pathlib import Path
from typing import Any

import typer

from snapdiff.browser.browser import Browser
from snapdiff.config import BrowserConfig, WindowSize, settings
from snapdiff.exceptions import GridConnectionRefused, SnapdiffException

from .console import console, output, output_error

cli_app = typer.Typer(
    help="""[bold]snapdiff[/bold]\nDrive a remote WebDriver browser and capture screenshots.""",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def _build_config(
    grid_url: str | None,
    window_size: str | None = None,
    debug: bool = False,
    coverage: bool = False,
) -> BrowserConfig:
    try:
        size = WindowSize.parse(window_size) if window_size else None
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--window-size") from e
    return BrowserConfig(
        grid_url=grid_url or settings.GRID_URL,
        window_size=size,
        debug=debug or settings.DEBUG_MODE,
        coverage=coverage,
    )


def _new_browser(config: BrowserConfig, browser_name: str) -> Browser:
    return Browser(config, f"{browser_name}-{uuid.uuid4().hex[:8]}", {"browserName": browser_name})


@cli_app.command("check-grid")
def check_grid(
    grid_url: str | None = typer.Option(None, "--grid-url", help="WebDriver endpoint, defaults to SNAPDIFF_GRID_URL."),
    browser_name: str = typer.Option("chrome", "--browser", help="browserName capability to request."),
    debug: bool = typer.Option(False, "--debug", help="Trace every WebDriver command."),
) -> None:
    """Start a browser session on the grid and close it again."""
    config = _build_config(grid_url, debug=debug)

    async def _run() -> dict[str, Any]:
        browser = _new_browser(config, browser_name)
        try:
            await browser.launch()
            return {"grid_url": config.grid_url, "browser": browser.browser_name, "session": browser.id}
        finally:
            await browser.quit()

    try:
        data = asyncio.run(_run())
    except GridConnectionRefused as e:
        output_error(f"Unable to connect to {e.grid_url}", hint=e.advice)
    except SnapdiffException as e:
        output_error(str(e))
    else:
        console.print("[green]Browser session started and closed successfully[/green]")
        output(data)


@cli_app.command("capture")
def capture(
    url: str = typer.Argument(..., help="Page to open."),
    out: Path = typer.Option(..., "--out", "-o", help="PNG file to write the screenshot to."),
    selectors: list[str] | None = typer.Option(
        None, "--selector", "-s", help="Element to prepare the screenshot for, may be repeated."
    ),
    grid_url: str | None = typer.Option(None, "--grid-url", help="WebDriver endpoint, defaults to SNAPDIFF_GRID_URL."),
    browser_name: str = typer.Option("chrome", "--browser", help="browserName capability to request."),
    window_size: str | None = typer.Option(None, "--window-size", help="Window size as <width>x<height>."),
    coverage: bool = typer.Option(False, "--coverage", help="Inject the css coverage script."),
    debug: bool = typer.Option(False, "--debug", help="Trace every WebDriver command."),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    """Open a page and save a screenshot of the whole viewport."""
    config = _build_config(grid_url, window_size=window_size, debug=debug, coverage=coverage)

    async def _run() -> dict[str, Any]:
        browser = _new_browser(config, browser_name)
        try:
            # a launch that fails after the session was created still leaves a session to end
            await browser.launch()
            await browser.open(url)
            prepared = None
            if selectors:
                prepared = await browser.prepare_screenshot(selectors, {"coverage": coverage})
            image = await browser.capture_fullscreen_image()
            path = image.save(out)
            return {"url": url, "screenshot": str(path), "size": image.size, "prepared": prepared}
        finally:
            await browser.quit()

    try:
        data = asyncio.run(_run())
    except GridConnectionRefused as e:
        output_error(f"Unable to connect to {e.grid_url}", hint=e.advice)
    except SnapdiffException as e:
        output_error(str(e))
    else:
        output(data, json_mode=json_output)
