from __future__ import annotations

import json
from typing import Any, Protocol

from rich.console import Console
from rich.markup import escape

from snapdiff.config import BrowserConfig
from snapdiff.constants import BINARY_DATA_PLACEHOLDER, SCREENSHOT_COMMAND


class TransportObserver(Protocol):
    """Receives the events a transport emits while talking to the WebDriver endpoint."""

    def on_connection(self, code: str, message: str) -> None: ...

    def on_status(self, info: str) -> None: ...

    def on_command(self, event_type: str, command: str, response: Any = None) -> None: ...

    def on_http(self, method: str, path: str, data: Any = None) -> None: ...


def _as_text(payload: Any) -> str:
    if payload is None:
        return ""
    if isinstance(payload, str):
        return payload
    return json.dumps(payload, default=str)


class DebugObserver:
    """Prints every transport event as a colour-coded line."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console(stderr=True, highlight=False)

    def on_connection(self, code: str, message: str) -> None:
        self.console.print(f"[red] ! {escape(str(code))}: {escape(message)}[/red]")

    def on_status(self, info: str) -> None:
        self.console.print(f"[cyan]{escape(info)}[/cyan]")

    def on_command(self, event_type: str, command: str, response: Any = None) -> None:
        if event_type == "RESPONSE" and command == SCREENSHOT_COMMAND:
            response = BINARY_DATA_PLACEHOLDER
        self.console.print(
            f" > [cyan]{escape(event_type)}[/cyan] {escape(command)} [grey50]{escape(_as_text(response))}[/grey50]"
        )

    def on_http(self, method: str, path: str, data: Any = None) -> None:
        self.console.print(
            f" > [magenta]{escape(method)}[/magenta] {escape(path)} [grey50]{escape(_as_text(data))}[/grey50]"
        )


def build_observers(config: BrowserConfig) -> list[TransportObserver]:
    if config.debug:
        return [DebugObserver()]
    return []
