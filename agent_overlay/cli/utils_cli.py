# agent_overlay/cli/utils_cli.py
import requests
import typer
import json
from typing import Optional, Any, Union, List


def make_api_request(
    method: str,
    endpoint: str,
    json_payload: Optional[Any] = None,
    expected_status: Union[int, List[int]] = 200,
    quiet: bool = False
) -> Any:
    """
    Call the running overlay server and return the decoded JSON body.

    Any unexpected status or connection problem is reported on the console
    and ends the command with exit code 1.
    """
    from .config import OVERLAY_CLI_API_BASE_URL, OVERLAY_CLI_TIMEOUT_SECONDS

    full_url = f"{OVERLAY_CLI_API_BASE_URL}{endpoint}"
    if not quiet:
        typer.echo(f"CLI: {method.upper()} {full_url}")
        if json_payload is not None:
            # Never echo the voice application secret
            shown = json_payload
            if isinstance(json_payload, dict) and "clientSecret" in json_payload:
                shown = {**json_payload, "clientSecret": "********"}
            typer.echo(f"CLI: JSON Payload: {json.dumps(shown, indent=2)}")

    try:
        response = requests.request(method, full_url, json=json_payload, timeout=OVERLAY_CLI_TIMEOUT_SECONDS)
    except requests.exceptions.ConnectionError as e:
        typer.secho(
            f"CLI: Connection Error - Could not connect to {full_url}. Is the overlay running? Error: {e}",
            fg=typer.colors.RED
        )
        raise typer.Exit(code=1)
    except requests.exceptions.RequestException as e:
        typer.secho(f"CLI: Request Error - {e}", fg=typer.colors.RED)
        raise typer.Exit(code=1)

    expected_statuses = [expected_status] if isinstance(expected_status, int) else expected_status
    if response.status_code not in expected_statuses:
        err_msg = f"CLI: API Error - Expected status {expected_status}, got {response.status_code}."
        try:
            err_msg += f" Detail: {response.json().get('detail', response.text)}"
        except (json.JSONDecodeError, ValueError, AttributeError):
            err_msg += f" Raw response: {response.text}"
        typer.secho(err_msg, fg=typer.colors.RED)
        raise typer.Exit(code=1)

    try:
        return response.json()
    except ValueError:
        typer.secho(f"CLI: Error - Could not decode JSON response. Raw text: {response.text}", fg=typer.colors.RED)
        raise typer.Exit(code=1)


def print_json(data: Any) -> None:
    typer.echo(json.dumps(data, indent=2))
