"""Tests for the CLI module."""

from __future__ import annotations

import json
import os
from unittest.mock import patch

import click
import pytest
from click.testing import CliRunner

from coinfolio import cli as cli_module
from coinfolio.cli import _fmt_pct, _parse_allocations, cli
from coinfolio.core.models import PriceSeries, SearchResult
from coinfolio.providers import FailoverClient


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for key in list(os.environ):
        if key.startswith("COINFOLIO_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    # wide enough that rich never wraps table cells
    monkeypatch.setattr(cli_module.console, "width", 200)


@pytest.fixture
def provider(fake_provider, bitcoin, ethereum):
    return fake_provider(
        "Fake",
        {
            "get_top_assets": lambda limit: [bitcoin, ethereum][:limit],
            "search_assets": [SearchResult(id="bitcoin", name="Bitcoin", symbol="btc")],
            "get_assets_by_ids": lambda ids: [a for a in (bitcoin, ethereum) if a.id in ids],
            "get_price_history": lambda asset_id, days: PriceSeries.from_pairs(
                asset_id, [(1000, 1.0), (2000, 1.1)]
            ),
        },
    )


@pytest.fixture
def patched_client(provider):
    client = FailoverClient([provider], failover_delay=0)
    with patch("coinfolio.cli._create_client", return_value=client):
        yield client


# ---------------------------------------------------------------------------
# Helper function tests
# ---------------------------------------------------------------------------


class TestParseAllocations:
    def test_pairs(self):
        assert _parse_allocations(("Bitcoin=60", "ethereum=40.5")) == {
            "bitcoin": 60.0,
            "ethereum": 40.5,
        }

    def test_missing_separator(self):
        with pytest.raises(click.BadParameter, match="ID=PERCENT"):
            _parse_allocations(("bitcoin",))

    def test_empty_id(self):
        with pytest.raises(click.BadParameter):
            _parse_allocations(("=50",))

    def test_non_numeric(self):
        with pytest.raises(click.BadParameter, match="not a number"):
            _parse_allocations(("bitcoin=lots",))


class TestFormatting:
    def test_pct(self):
        assert _fmt_pct(1.234) == "+1.23%"
        assert _fmt_pct(-0.5) == "-0.50%"
        assert _fmt_pct(None) == "-"


# ---------------------------------------------------------------------------
# CLI group tests
# ---------------------------------------------------------------------------


class TestCLIGroup:
    def test_help(self, runner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "coinfolio" in result.output

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_unknown_command(self, runner):
        result = runner.invoke(cli, ["nonexistent"])
        assert result.exit_code != 0


# ---------------------------------------------------------------------------
# Market data commands
# ---------------------------------------------------------------------------


class TestTopCommand:
    def test_json(self, runner, patched_client, provider):
        result = runner.invoke(cli, ["top", "--limit", "2", "--format", "json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert [a["id"] for a in data] == ["bitcoin", "ethereum"]
        assert "sparkline_7d" not in data[0]
        assert provider.calls == [("get_top_assets", (2,))]

    def test_table(self, runner, patched_client):
        result = runner.invoke(cli, ["top", "--limit", "1"])
        assert result.exit_code == 0, result.output
        assert "Bitcoin" in result.output

    def test_client_closed(self, runner, patched_client, provider):
        runner.invoke(cli, ["top", "--format", "json"])
        assert provider.closed

    def test_all_providers_failed(self, runner, fake_provider, upstream_error):
        bad = fake_provider("Bad", {"get_top_assets": upstream_error(503)})
        client = FailoverClient([bad], failover_delay=0)
        with patch("coinfolio.cli._create_client", return_value=client):
            result = runner.invoke(cli, ["top"])

        assert result.exit_code == 1
        assert "AllProvidersFailedError" in result.output


class TestSearchCommand:
    def test_results(self, runner, patched_client):
        result = runner.invoke(cli, ["search", "bit"])
        assert result.exit_code == 0, result.output
        assert "BTC" in result.output

    def test_no_results(self, runner, fake_provider):
        client = FailoverClient([fake_provider("F", {"search_assets": []})], failover_delay=0)
        with patch("coinfolio.cli._create_client", return_value=client):
            result = runner.invoke(cli, ["search", "zzz"])
        assert result.exit_code == 0
        assert "No assets match" in result.output


class TestHistoryCommand:
    def test_range_to_days(self, runner, patched_client, provider):
        result = runner.invoke(cli, ["history", "Bitcoin", "--range", "90d"])

        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["asset_id"] == "bitcoin"
        assert provider.calls == [("get_price_history", ("bitcoin", 90))]


# ---------------------------------------------------------------------------
# analyze command tests
# ---------------------------------------------------------------------------


class TestAnalyzeCommand:
    def test_json(self, runner, patched_client):
        result = runner.invoke(
            cli,
            ["analyze", "-a", "bitcoin=50", "-a", "ethereum=50", "--total", "1000", "--format", "json"],
        )

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["metrics"]["total_value"] == 1000.0
        assert data["allocation_balanced"] is True
        assert len(data["chart"]) == 2

    def test_table_warns_on_imbalance(self, runner, patched_client):
        result = runner.invoke(cli, ["analyze", "-a", "bitcoin=30"])
        assert result.exit_code == 0, result.output
        assert "imbalance" in result.output

    def test_bad_allocation(self, runner, patched_client):
        result = runner.invoke(cli, ["analyze", "-a", "bitcoin"])
        assert result.exit_code == 2
        assert "ID=PERCENT" in result.output

    def test_requires_alloc(self, runner):
        result = runner.invoke(cli, ["analyze"])
        assert result.exit_code != 0


# ---------------------------------------------------------------------------
# providers command tests
# ---------------------------------------------------------------------------


class TestProvidersCommand:
    def test_default_order(self, runner):
        result = runner.invoke(cli, ["providers"])

        assert result.exit_code == 0, result.output
        out = result.output
        assert out.index("coingecko") < out.index("cryptocompare") < out.index("coinmarketcap")
        assert "Failover delay: 0.1s" in out

    def test_config_file(self, runner, tmp_path):
        config_file = tmp_path / "custom.yml"
        config_file.write_text("providers:\n  order: [cryptocompare]\n")

        result = runner.invoke(cli, ["--config", str(config_file), "providers"])

        assert result.exit_code == 0, result.output
        assert "cryptocompare" in result.output
        assert "coingecko" not in result.output

    def test_invalid_config_file(self, runner, tmp_path):
        config_file = tmp_path / "bad.yml"
        config_file.write_text("- just\n- a list\n")

        result = runner.invoke(cli, ["--config", str(config_file), "providers"])

        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "ConfigError" in result.output
        assert "mapping" in result.output
