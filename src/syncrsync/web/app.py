"""Service entry point"""

import asyncio
from pathlib import Path
from typing import Optional

import typer
import uvicorn

from .. import config
from ..output import ConsoleMirror
from ..runtime import RuntimeComponents, bootstrap
from ..telemetry import configure_logging, get_logger
from .notify import WebNotifier
from .server import WebServer

logger = get_logger(__name__)


def create_app(
    workspace: Path,
    settings_path: Path | None = None,
    echo: bool = False,
) -> tuple[WebServer, RuntimeComponents]:
    """Build the runtime and the web host around it (sources not started)."""
    components = bootstrap(workspace, settings_path=settings_path, notifier=WebNotifier())
    if echo:
        components.output.add_listener(ConsoleMirror())
    return WebServer(components), components


async def start_server(
    workspace: Path,
    settings_path: Path | None = None,
    host: str = config.SERVER_HOST,
    port: int = config.SERVER_PORT,
    echo: bool = False,
) -> None:
    server, components = create_app(workspace, settings_path, echo)
    await components.start_sources()

    uvicorn_config = uvicorn.Config(server.app, host=host, port=port, log_level="info")
    uvicorn_server = uvicorn.Server(uvicorn_config)

    print(f"Sync-Rsync serving {components.workspace} at http://{host}:{port}")

    try:
        await uvicorn_server.serve()
    finally:
        await components.shutdown()


cli = typer.Typer(
    name="sync-rsync",
    add_completion=False,
    help="rsync workspace sync service",
)


@cli.command()
def serve(
    workspace: Path = typer.Argument(Path("."), help="Workspace root (default: cwd)"),
    settings: Optional[Path] = typer.Option(None, "--settings", help="Settings JSON file"),
    host: str = typer.Option(config.SERVER_HOST, "--host"),
    port: int = typer.Option(config.SERVER_PORT, "--port"),
    echo: bool = typer.Option(False, "--echo", help="Mirror sync output to this terminal"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override SYNC_RSYNC_LOG_LEVEL"),
):
    """Serve the sync runtime for a workspace."""
    configure_logging(log_level)
    try:
        asyncio.run(start_server(workspace, settings, host, port, echo))
    except KeyboardInterrupt:
        print("\nServer stopped")


def main():
    """CLI entry point"""
    cli()
