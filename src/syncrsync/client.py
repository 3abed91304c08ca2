"""sync-rsync-ctl - command-line client for a running service

Examples:
    sync-rsync-ctl status
    sync-rsync-ctl run sync-up
    sync-rsync-ctl run sync-up-single --choice 1
    sync-rsync-ctl select 0        # select the first site
    sync-rsync-ctl select none     # disconnect
    sync-rsync-ctl save path/to/file.py
    sync-rsync-ctl open path/to/file.py
"""

from collections.abc import Callable
from typing import Any, Optional

import httpx
import typer
from rich.console import Console

from . import config
from .telemetry import get_logger

logger = get_logger(__name__)
stdout_console = Console()
stderr_console = Console(stderr=True)


class SyncRsyncClient:
    """Thin HTTP client for the web host's API."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = config.CLIENT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ):
        base_url = base_url or f"http://{config.SERVER_HOST}:{config.SERVER_PORT}"
        self._client = httpx.Client(base_url=base_url, timeout=timeout, transport=transport)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "SyncRsyncClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _get(self, path: str) -> Any:
        response = self._client.get(path)
        response.raise_for_status()
        return response.json()

    def _post(self, path: str, json: Any = None, params: dict | None = None) -> Any:
        response = self._client.post(path, json=json, params=params)
        response.raise_for_status()
        return response.json()

    def status(self) -> dict:
        return self._get("/api/status")

    def output(self) -> str:
        return self._get("/api/output")["text"]

    def sites(self) -> dict:
        return self._get("/api/sites")

    def select(self, index: int | None) -> dict:
        return self._post("/api/sites/select", json={"index": index})

    def command(self, name: str, choice: int | None = None) -> Any:
        params = {"choice": choice} if choice is not None else None
        return self._post(f"/api/commands/{name}", params=params)["result"]

    def editor_event(self, event: str, path: str) -> dict:
        return self._post("/api/editor", json={"event": event, "path": path})


app = typer.Typer(
    name="sync-rsync-ctl",
    add_completion=False,
    help="Control a running sync-rsync service",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    ctx: typer.Context,
    url: Optional[str] = typer.Option(None, "--url", help="Service base URL"),
):
    client = SyncRsyncClient(url)
    ctx.obj = client
    ctx.call_on_close(client.close)


def _call(ctx: typer.Context, action: Callable[[SyncRsyncClient], Any]) -> Any:
    """Run one request, turning transport and HTTP errors into exit code 1."""
    try:
        return action(ctx.obj)
    except httpx.HTTPStatusError as e:
        try:
            detail = e.response.json().get("detail", e.response.text)
        except ValueError:
            detail = e.response.text or e.response.reason_phrase
        stderr_console.print(f"[red]Error {e.response.status_code}:[/red] {detail}")
        raise typer.Exit(1)
    except httpx.HTTPError as e:
        stderr_console.print(f"[red]Cannot reach service:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def status(ctx: typer.Context):
    """Show the status indicator."""
    data = _call(ctx, lambda client: client.status())
    indicator = data["indicator"]
    stdout_console.print(indicator["text"], style=indicator.get("color") or None, markup=False)


@app.command()
def output(ctx: typer.Context):
    """Print the output channel."""
    text = _call(ctx, lambda client: client.output())
    stdout_console.print(text, end="", markup=False, highlight=False)


@app.command()
def sites(ctx: typer.Context):
    """List configured sites (* marks the selected one)."""
    data = _call(ctx, lambda client: client.sites())
    for site in data["sites"]:
        marker = "*" if site["selected"] else " "
        stdout_console.print(f"{marker} {site['index']}: {site['label']}  {site['description']}", markup=False)


@app.command()
def select(
    ctx: typer.Context,
    index: str = typer.Argument(..., help="Site index, or 'none' to disconnect"),
):
    """Select a site or disconnect."""
    target = None if index.lower() == "none" else int(index)
    data = _call(ctx, lambda client: client.select(target))
    stdout_console.print(data["indicator"]["text"], markup=False)


@app.command()
def run(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Command name (sync-up, compare-down, kill-sync...)"),
    choice: Optional[int] = typer.Option(None, "--choice", help="Picker entry index"),
):
    """Run a command; exits 1 unless a sync it started succeeded."""
    result = _call(ctx, lambda client: client.command(name, choice))
    if isinstance(result, dict) and "state" in result:
        stdout_console.print(result["state"])
        if result["state"] != "succeeded":
            raise typer.Exit(1)
    elif result is not None:
        stdout_console.print(result)


def _editor_event(ctx: typer.Context, event: str, path: str) -> None:
    data = _call(ctx, lambda client: client.editor_event(event, path))
    stdout_console.print(", ".join(data["outcomes"]) or data["message"], markup=False)
    if not data["success"]:
        raise typer.Exit(1)


@app.command()
def save(ctx: typer.Context, path: str = typer.Argument(..., help="Saved file")):
    """Report an editor save event."""
    _editor_event(ctx, "save", path)


@app.command(name="open")
def open_file(ctx: typer.Context, path: str = typer.Argument(..., help="Opened file")):
    """Report an editor open event."""
    _editor_event(ctx, "open", path)


def main():
    """CLI entry point"""
    app()


if __name__ == "__main__":
    main()
