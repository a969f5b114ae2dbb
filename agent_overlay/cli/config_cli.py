# agent_overlay/cli/config_cli.py
import typer
from typing import Annotated

from .utils_cli import make_api_request, print_json

app = typer.Typer(
    name="config",
    help="View or change the voice platform credentials.",
    no_args_is_help=True
)


@app.command("show")
def show_config():
    """Show the saved credentials with the secret masked."""
    print_json(make_api_request("GET", "/api/config", quiet=True))


@app.command("set")
def set_config(
    client_id: Annotated[str, typer.Option(prompt="Client ID", help="Voice application client id.")],
    client_secret: Annotated[
        str,
        typer.Option(prompt="Client Secret", hide_input=True, help="Voice application client secret.")
    ],
    redirect_uri: Annotated[str, typer.Option(help="Redirect URI registered for the application.")] = "http://localhost"
):
    """Save credentials; the server reconnects to the voice platform straight away."""
    payload = {"clientId": client_id, "clientSecret": client_secret, "redirectUri": redirect_uri}
    print_json(make_api_request("POST", "/api/config", json_payload=payload))
