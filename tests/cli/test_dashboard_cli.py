"""Tests for the operator CLI."""

import json

import httpx
import pytest
from click.testing import CliRunner

from aegis_dashboard.cli import dashboard
from aegis_dashboard.cli.dashboard import cli, print_vendor_table
from aegis_dashboard.integrations.vendor_status import VendorStatusEvaluator
from aegis_dashboard.schemas.records import VendorStatus, VendorStatusOption


@pytest.fixture
def offline_evaluator(monkeypatch: pytest.MonkeyPatch) -> None:
    """Serve vendor status pages from a mock transport."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"status": {"indicator": "none"}}, request=request)

    monkeypatch.setattr(
        dashboard,
        "VendorStatusEvaluator",
        lambda: VendorStatusEvaluator(transport=httpx.MockTransport(handler)),
    )


def test_vendors_json_output(offline_evaluator: None) -> None:
    """JSON output lists every seeded vendor with its status."""
    runner = CliRunner()
    result = runner.invoke(cli, ["vendors", "--json"])

    assert result.exit_code == 0, result.output
    statuses = json.loads(result.output)
    assert [item["name"] for item in statuses][:2] == ["CrowdStrike", "Citrix"]
    assert {item["status"] for item in statuses} == {"Operational"}


def test_vendors_table_output(offline_evaluator: None) -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["vendors"])

    assert result.exit_code == 0, result.output
    assert "VENDOR STATUS" in result.output
    assert "CrowdStrike" in result.output


def test_seed_reports_each_indexed_type() -> None:
    runner = CliRunner()

    first = runner.invoke(cli, ["seed"])
    second = runner.invoke(cli, ["seed"])

    assert first.exit_code == 0, first.output
    assert "vendor: seeded" in first.output
    assert "collaboration-bridge: seeded" in first.output
    assert "servicenow-config" not in first.output
    assert "vendor: already populated" in second.output


def test_print_vendor_table_handles_empty(capsys: pytest.CaptureFixture[str]) -> None:
    print_vendor_table([])
    assert "No vendors configured." in capsys.readouterr().out


def test_print_vendor_table_rows(capsys: pytest.CaptureFixture[str]) -> None:
    print_vendor_table(
        [VendorStatus(id="v", name="Five9", url="https://status.five9.com", status=VendorStatusOption.OUTAGE)]
    )
    output = capsys.readouterr().out
    assert "Five9" in output
    assert "Outage" in output
