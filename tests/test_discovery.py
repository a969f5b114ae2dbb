# tests/test_discovery.py
import base64

import pytest

from agent_overlay.sessions.discovery import (
    LockfileError,
    build_local_auth_header,
    find_deployment_region,
    parse_lockfile,
    read_lockfile,
    region_to_shard,
    scrape_glz_url,
)


def test_parse_lockfile():
    lockfile = parse_lockfile("Riot Client:1234:55555:s3cret:https\n")
    assert lockfile.name == "Riot Client"
    assert lockfile.pid == 1234
    assert lockfile.port == 55555
    assert lockfile.password == "s3cret"
    assert lockfile.base_url == "https://127.0.0.1:55555"


@pytest.mark.parametrize("content", ["", "Riot Client:1234:55555", "Riot Client:abc:port:pw:https"])
def test_parse_lockfile_rejects_bad_content(content):
    with pytest.raises(LockfileError):
        parse_lockfile(content)


def test_read_lockfile_missing(tmp_path):
    with pytest.raises(LockfileError):
        read_lockfile(tmp_path / "lockfile")


def test_local_auth_header():
    header = build_local_auth_header("pw")
    assert header == "Basic " + base64.b64encode(b"riot:pw").decode("ascii")


def test_find_deployment_region():
    external_sessions = {
        "host_app": {"productId": "riot_client", "launchConfiguration": {"arguments": ["-ares-deployment=xx"]}},
        "abc": {
            "productId": "valorant",
            "launchConfiguration": {"arguments": ["-login", "-ares-deployment=ap", "-config-endpoint=x"]},
        },
    }
    assert find_deployment_region(external_sessions) == "ap"
    assert find_deployment_region({}) is None
    assert find_deployment_region([]) is None


@pytest.mark.parametrize(
    "region, expected",
    [
        ("na", ("na", "na")),
        ("latam", ("latam", "na")),
        ("br", ("br", "na")),
        ("ap", ("ap", "ap")),
        ("kr", ("kr", "kr")),
        ("eu", ("eu", "eu")),
        ("tr", ("tr", "eu")),
        (None, ("eu", "eu")),
        ("", ("eu", "eu")),
    ],
)
def test_region_to_shard(region, expected):
    assert region_to_shard(region) == expected


def test_scrape_glz_url(tmp_path):
    log_path = tmp_path / "ShooterGame.log"
    log_path.write_text(
        "[2024.01.01] LogNet: connecting\n"
        "[2024.01.01] Platform: https://glz-latam-1.na.a.pvp.net/session/v1/sessions\n",
        encoding="utf-8",
    )
    assert scrape_glz_url(log_path) == "https://glz-latam-1.na.a.pvp.net"
    assert scrape_glz_url(tmp_path / "missing.log") is None
