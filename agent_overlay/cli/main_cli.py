# agent_overlay/cli/main_cli.py
import typer
from typing import Annotated, Optional

from . import config_cli, mapping_cli
from .utils_cli import make_api_request

# Main CLI application with help enabled when no arguments are provided
app = typer.Typer(
    name="overlay",
    help="Agent Overlay Command Line Interface.",
    no_args_is_help=True
)

app.add_typer(mapping_cli.app, name="mapping")
app.add_typer(config_cli.app, name="config")


@app.callback()
def main_callback():
    """
    Agent Overlay CLI. `overlay run` starts the server; the other commands
    talk to a server that is already running.
    """
    pass


@app.command("run")
def run_server(
    host: Annotated[Optional[str], typer.Option(help="Interface to bind; defaults to SERVER_HOST.")] = None,
    port: Annotated[Optional[int], typer.Option(help="Port to bind; defaults to SERVER_PORT.")] = None,
    reload: Annotated[bool, typer.Option(help="Restart on code changes.")] = False
):
    """Start the overlay server."""
    import uvicorn
    from ..settings import get_settings

    settings = get_settings()
    uvicorn.run(
        "agent_overlay.main:app",
        host=host or settings.server_host,
        port=port or settings.server_port,
        log_level=settings.log_level.lower(),
        reload=reload
    )


@app.command("status")
def status():
    """Show whether the game and voice platform are connected."""
    data = make_api_request("GET", "/api/status", quiet=True)
    valorant = "connected" if data.get("valorant") else "waiting for game"
    discord = "connected" if data.get("discord") else "disconnected"
    typer.echo(f"Game:        {valorant}")
    typer.echo(f"Voice:       {discord}")
    typer.echo(f"Loop state:  {data.get('loopState')}")
    typer.echo(f"Viewers:     {data.get('connections')}")


def cli_entry_point():
    """Entry point function for console script registration in pyproject.toml"""
    app()


if __name__ == "__main__":
    cli_entry_point()
