"""Tests for the command line interface."""

import json
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from imgbot_webhook.cli import cli

from payloads import marketplace_payload, push_payload


@pytest.fixture
def runner():
    return CliRunner()


class TestRouteCommand:
    """Test cases for routing a payload file."""

    def test_route_prints_result_and_messages(self, runner):
        payload = json.dumps(push_payload(added=["logo.png"]))

        result = runner.invoke(cli, ["route", "push", "-"], input=payload)

        assert result.exit_code == 0
        assert "Result: truth" in result.output
        assert '"repoName": "website"' in result.output
        assert result.output.count("routermessage:") == 1

    def test_route_bot_push(self, runner):
        payload = json.dumps(push_payload(ref="refs/heads/imgbot", sender="imgbot[bot]"))

        result = runner.invoke(cli, ["route", "push", "-"], input=payload)

        assert "Result: imgbot push" in result.output
        assert "openprmessage:" in result.output

    def test_route_marketplace(self, runner):
        payload = json.dumps(marketplace_payload("changed"))

        result = runner.invoke(cli, ["route", "marketplace_purchase", "-"], input=payload)

        assert result.exit_code == 0
        assert "Result: changed" in result.output

    def test_route_unknown_kind(self, runner):
        result = runner.invoke(cli, ["route", "ping", "-"], input="{}")

        assert "Result: no action" in result.output

    def test_route_invalid_payload(self, runner):
        result = runner.invoke(cli, ["route", "push", "-"], input="[1, 2]")

        assert result.exit_code == 1


def test_kinds_lists_handled_events(runner):
    result = runner.invoke(cli, ["kinds"])

    assert result.exit_code == 0
    assert result.output.split() == [
        "installation_repositories",
        "installation",
        "integration_installation_repositories",
        "integration_installation",
        "push",
        "marketplace_purchase",
    ]


def test_serve_runs_uvicorn(runner):
    with patch("uvicorn.run") as mock_run:
        result = runner.invoke(cli, ["serve", "--port", "8080"])

    assert result.exit_code == 0
    mock_run.assert_called_once_with(
        "imgbot_webhook.main:app", host="0.0.0.0", port=8080, reload=False
    )
