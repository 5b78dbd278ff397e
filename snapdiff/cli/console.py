from __future__ import annotations

import json
from typing import Any

from rich.console import Console

console = Console()


def output(data: Any, *, json_mode: bool = False) -> None:
    if json_mode:
        console.print_json(json.dumps({"ok": True, "data": data, "error": None}, default=str))
        return
    if isinstance(data, dict):
        for key, value in data.items():
            console.print(f"[bold]{key}:[/bold] {value}")
    else:
        console.print(str(data))


def output_error(message: str, *, hint: str = "", exit_code: int = 1) -> None:
    console.print(f"[red]Error: {message}[/red]")
    if hint:
        console.print(f"[yellow]Hint: {hint}[/yellow]")
    raise SystemExit(exit_code)
