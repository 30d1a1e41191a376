"""Smoke tests for the click CLI against a throwaway SQLite file."""

import pytest
from click.testing import CliRunner

from shopstock.infrastructure import bootstrap
from shopstock.infrastructure.cli.main import cli


@pytest.fixture
def runner(tmp_path, monkeypatch):
    monkeypatch.setenv("SHOPSTOCK_DATABASE_URL", f"sqlite:///{tmp_path / 'cli.db'}")
    bootstrap.reset()
    yield CliRunner()
    bootstrap.reset()


def _ok(runner, *args):
    result = runner.invoke(cli, list(args))
    assert result.exit_code == 0, result.output
    return result.output


def _seed(runner):
    _ok(runner, "product", "add", "--name", "Widget", "--price", "15.00", "--stock", "10")
    _ok(runner, "product", "add", "--name", "Gadget", "--price", "25.00", "--stock", "2")


def test_product_add_and_list(runner):
    _seed(runner)
    output = _ok(runner, "product", "list")
    assert "Widget" in output
    assert "Gadget" in output


def test_order_reserves_and_payment_deducts(runner):
    _seed(runner)

    output = _ok(runner, "order", "create", "--user", "u1", "--items", "1:3")
    assert "created, stock reserved" in output
    assert "ORD-" in output

    inventory = _ok(runner, "inventory", "show")
    widget = next(line for line in inventory.splitlines() if "Widget" in line)
    assert widget.split()[2:5] == ["10", "3", "7"]

    assert "stock deducted" in _ok(runner, "order", "pay", "--id", "1")
    assert "already paid" in _ok(runner, "order", "pay", "--id", "1")

    widget = next(line for line in _ok(runner, "inventory", "show").splitlines() if "Widget" in line)
    assert widget.split()[2:5] == ["7", "0", "7"]


def test_oversell_rejected(runner):
    _seed(runner)
    result = runner.invoke(cli, ["order", "create", "--user", "u1", "--items", "2:3"])
    assert result.exit_code != 0
    assert "Only 2 available" in result.output


def test_cancel_and_show(runner):
    _seed(runner)
    _ok(runner, "order", "create", "--user", "u1", "--items", "1:2,2:1")

    assert "cancelled" in _ok(runner, "order", "cancel", "--id", "1", "--reason", "Changed mind")

    output = _ok(runner, "order", "show", "1")
    assert "Changed mind" in output
    assert "cancelled" in output


def test_invalid_transition_reports_error(runner):
    _seed(runner)
    _ok(runner, "order", "create", "--user", "u1", "--items", "1:1")
    result = runner.invoke(cli, ["order", "status", "--id", "1", "--to", "delivered"])
    assert result.exit_code != 0
    assert "Cannot transition from pending to delivered" in result.output


def test_bad_items_format(runner):
    result = runner.invoke(cli, ["inventory", "check", "--items", "1-3"])
    assert result.exit_code != 0
    assert "Invalid item format" in result.output


def test_sync_and_expire(runner):
    _seed(runner)
    _ok(runner, "order", "create", "--user", "u1", "--items", "1:2")

    assert "already in sync" in _ok(runner, "inventory", "sync", "--product", "1")
    assert "Released 0 reservation(s)" in _ok(runner, "reservations", "expire")


def test_expire_rejects_non_positive_timeout(runner):
    _seed(runner)
    _ok(runner, "order", "create", "--user", "u1", "--items", "1:2")

    result = runner.invoke(cli, ["reservations", "expire", "--timeout", "0"])

    assert result.exit_code != 0
    assert "Released" not in result.output
    widget = next(line for line in _ok(runner, "inventory", "show").splitlines() if "Widget" in line)
    assert widget.split()[2:5] == ["10", "2", "8"]
