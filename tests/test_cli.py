# tests/test_cli.py
from unittest.mock import MagicMock

from typer.testing import CliRunner

from agent_overlay.cli import mapping_cli
from agent_overlay.cli.main_cli import app

runner = CliRunner()


def test_mapping_set_adds_to_existing_table(monkeypatch):
    calls = []

    def fake_request(method, endpoint, json_payload=None, **kwargs):
        calls.append((method, endpoint, json_payload))
        return {"al": "Alice#1"} if method == "GET" else {"success": True}

    monkeypatch.setattr(mapping_cli, "make_api_request", fake_request)

    result = runner.invoke(app, ["mapping", "set", "bob", "Robert#EUW"])

    assert result.exit_code == 0
    assert calls[-1] == ("POST", "/api/mapping", {"al": "Alice#1", "bob": "Robert#EUW"})


def test_mapping_remove_unknown_name_fails(monkeypatch):
    monkeypatch.setattr(mapping_cli, "make_api_request", MagicMock(return_value={}))
    result = runner.invoke(app, ["mapping", "remove", "ghost"])
    assert result.exit_code == 1


def test_mapping_list(monkeypatch):
    monkeypatch.setattr(mapping_cli, "make_api_request", MagicMock(return_value={"bob": "Robert"}))
    result = runner.invoke(app, ["mapping", "list"])
    assert result.exit_code == 0
    assert "bob -> Robert" in result.output
