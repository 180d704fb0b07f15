"""Tests for the command line entrypoint."""

import json
import sys

import pytest

from tenant_service import main as main_module


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch, tmp_path) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("CACHE_BACKEND", "none")
    monkeypatch.setattr(main_module, "config_configure_logging", lambda level: None)


def test_main_health_report_prints_json_for_reachable_database(monkeypatch, tmp_path, capsys) -> None:
    """Print one report and return normally when the database answers.

    Raises:
        AssertionError: Raised when the report output diverges.
    """

    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'tenant.db'}")
    monkeypatch.setattr(sys, "argv", ["tenant-service", "health-report"])

    main_module.main()

    report = json.loads(capsys.readouterr().out)
    assert report["status"] in ("healthy", "degraded")
    assert [component["name"] for component in report["components"]] == ["database", "cache"]
    assert report["components"][1]["status"] == "unavailable"


def test_main_health_report_exits_non_zero_when_database_is_unreachable(monkeypatch, tmp_path, capsys) -> None:
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'missing' / 'tenant.db'}")
    monkeypatch.setattr(sys, "argv", ["tenant-service", "health-report"])

    with pytest.raises(SystemExit) as raised:
        main_module.main()

    assert raised.value.code == 1
    assert json.loads(capsys.readouterr().out)["status"] == "unhealthy"


def test_main_rejects_unknown_command(monkeypatch) -> None:
    monkeypatch.setattr(sys, "argv", ["tenant-service", "migrate"])

    with pytest.raises(SystemExit) as raised:
        main_module.main()

    assert raised.value.code == 2
