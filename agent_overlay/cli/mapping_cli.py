# agent_overlay/cli/mapping_cli.py
import typer
from typing import Annotated

from .utils_cli import make_api_request, print_json

app = typer.Typer(
    name="mapping",
    help="Manage manual voice name -> in-game name overrides.",
    no_args_is_help=True
)


@app.command("list")
def list_mapping():
    """Show every saved override."""
    overrides = make_api_request("GET", "/api/mapping", quiet=True)
    if not overrides:
        typer.echo("No overrides saved.")
        return
    for voice_name, game_name in overrides.items():
        typer.echo(f"{voice_name} -> {game_name}")


@app.command("set")
def set_mapping(
    voice_name: Annotated[str, typer.Argument(help="Display name as shown in the voice channel.")],
    game_name: Annotated[str, typer.Argument(help="In-game name, with or without the #tag.")]
):
    """Add or replace one override."""
    overrides = make_api_request("GET", "/api/mapping", quiet=True) or {}
    overrides[voice_name] = game_name
    print_json(make_api_request("POST", "/api/mapping", json_payload=overrides))


@app.command("remove")
def remove_mapping(
    voice_name: Annotated[str, typer.Argument(help="Display name whose override should be removed.")]
):
    """Remove one override."""
    overrides = make_api_request("GET", "/api/mapping", quiet=True) or {}
    if voice_name not in overrides:
        typer.secho(f"No override saved for '{voice_name}'.", fg=typer.colors.YELLOW)
        raise typer.Exit(code=1)
    del overrides[voice_name]
    print_json(make_api_request("POST", "/api/mapping", json_payload=overrides))
