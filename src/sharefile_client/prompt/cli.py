"""Command-line front end: log in, run one operation, render the result.

Pattern: Prompt Renderer
-------------------------
The CLI is the human-facing boundary.  It handles three responsibilities:

  1. **Login** - collect any credentials the settings lack and open a session.
  2. **Dispatch** - run the requested operation under that session.
  3. **Rendering** - show the result as a table when it is tabular, or
     pretty-printed otherwise.

Rich is used for display.  The CLI knows nothing about the session cache; it
delegates everything to ``ShareFile``.
"""

from __future__ import annotations

import asyncio
import dataclasses
import getpass
import logging
import sys
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.pretty import Pretty
from rich.table import Table

from sharefile_client.auth.session import short_id
from sharefile_client.client import OPERATIONS, ShareFile
from sharefile_client.config.settings import Settings
from sharefile_client.errors import ShareFileError

logger = logging.getLogger(__name__)
console = Console()


def _print_banner(settings: Settings) -> None:
    console.print(
        Panel(
            f"[bold]ShareFile[/bold]  {settings.subdomain}.{settings.domain}",
            border_style="blue",
        )
    )


def _complete_credentials(settings: Settings) -> Settings:
    """Prompt for whichever default credential the settings lack."""
    username = settings.username
    password = settings.password
    if not username:
        username = input("  Username: ").strip()
    if not password:
        password = getpass.getpass("  Password: ")

    if not username or not password:
        console.print("[red]Username and password are required.[/red]")
        sys.exit(1)

    return dataclasses.replace(settings, username=username, password=password)


def render(result: Any) -> None:
    """Print *result* as a table when it is a mapping or a list of mappings."""
    rows: list[dict[str, Any]] | None = None
    if isinstance(result, dict):
        rows = [result]
    elif isinstance(result, list) and result and all(isinstance(r, dict) for r in result):
        rows = result

    if rows is None:
        console.print(Pretty(result))
        return

    columns: list[str] = []
    for row in rows:
        columns.extend(k for k in row if k not in columns)

    table = Table()
    for column in columns:
        table.add_column(column, overflow="fold")
    for row in rows:
        table.add_row(*("" if row.get(c) is None else str(row.get(c)) for c in columns))
    console.print(table)


def parse_params(pairs: list[str]) -> dict[str, str]:
    """Turn ``key=value`` arguments into a parameter mapping."""
    params: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ValueError(f"Expected key=value, got {pair!r}")
        params[key] = value
    return params


async def _run(settings: Settings, method: str, params: dict[str, str]) -> Any:
    async with ShareFile(settings) as client:
        auth = await client.authenticate()
        console.print(f"  [green]Authenticated[/green] as [bold]{settings.username}[/bold] "
                      f"(session {short_id(auth)})\n")
        if method == "authenticate":
            return auth
        return await client.call(method, params, auth=auth)


def run_cli(settings: Settings, method: str, pairs: list[str]) -> None:
    """Main entry point for the command-line client."""
    if method not in OPERATIONS:
        console.print(f"[red]Unknown operation:[/red] {method} "
                      f"(choose from {', '.join(sorted(OPERATIONS))})")
        sys.exit(1)

    try:
        params = parse_params(pairs)
    except ValueError as exc:
        console.print(f"[red]{exc}[/red]")
        sys.exit(1)

    _print_banner(settings)
    settings = _complete_credentials(settings)

    try:
        result = asyncio.run(_run(settings, method, params))
    except ShareFileError as exc:
        code = getattr(exc, "code", None)
        suffix = f" (code {code})" if code is not None else ""
        console.print(f"[red]{type(exc).__name__}:[/red] {exc}{suffix}")
        sys.exit(1)

    render(result)
