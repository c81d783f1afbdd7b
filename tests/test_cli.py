"""Tests for argument parsing and exit codes."""
import httpx
import pytest

from spo_admin.cli import EXIT_FAILED, EXIT_OK, build_parser, main
from spo_admin.commands import build_registry
from spo_admin.commands.app import AppUninstallCommand
from spo_admin.commands.tenant import TenantAppListCommand

from .conftest import SITE_URL

APP_ID = "058140e3-0e37-44fc-a1d3-79c487d371a3"


def test_parses_nested_command_names():
    parser = build_parser(build_registry())

    args = parser.parse_args(["app", "uninstall", "--identity", APP_ID, "--verbose"])

    assert isinstance(args.command, AppUninstallCommand)
    assert args.id == APP_ID
    assert args.verbose


def test_parses_three_word_command():
    parser = build_parser(build_registry())

    args = parser.parse_args(["tenant", "app", "list"])

    assert isinstance(args.command, TenantAppListCommand)
    assert not args.verbose


def test_missing_required_option_is_a_usage_error(capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(["app", "uninstall"])

    assert excinfo.value.code == 2


def test_every_command_is_reachable():
    registry = build_registry()
    parser = build_parser(registry)

    for command in registry:
        argv = command.name.split()
        if command.name == "connect":
            argv.append(SITE_URL)
        elif command.name == "app add":
            argv += ["--file-path", "x.sppkg"]
        elif command.name.startswith("app ") and command.name != "app list":
            argv += ["--id", APP_ID]
        assert parser.parse_args(argv).command is command


def test_main_succeeds(session, connect, sharepoint, capsys):
    connect()
    sharepoint.route(
        "POST",
        f"{SITE_URL}/_api/web/tenantappcatalog/AvailableApps/GetByID('{APP_ID}')/uninstall",
        httpx.Response(200),
    )

    code = main(["app", "uninstall", "--identity", APP_ID], session=session)

    assert code == EXIT_OK
    assert capsys.readouterr().out.splitlines() == ["Uninstalling app...", "App uninstalled"]


def test_main_fails_when_not_connected(session, capsys):
    code = main(["app", "list"], session=session)

    assert code == EXIT_FAILED
    assert capsys.readouterr().out.strip() == "Connect to a SharePoint Online site first"


def test_main_reports_bad_config(tmp_path, capsys):
    code = main(["--config", str(tmp_path / "missing.yaml"), "status"])

    assert code == EXIT_FAILED
    assert "Configuration file not found" in capsys.readouterr().err
