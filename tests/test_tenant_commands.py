"""Tests for the tenant admin commands."""
import httpx
import pytest

from spo_admin.commands.tenant import TenantAppCatalogUrlGetCommand, TenantAppListCommand

from .conftest import ADMIN_URL, SITE_URL

TENANT_COMMANDS = [TenantAppListCommand(), TenantAppCatalogUrlGetCommand()]


@pytest.mark.parametrize("command", TENANT_COMMANDS)
def test_requires_connection(run, sharepoint, command):
    succeeded, log, calls = run(command)

    assert not succeeded
    assert calls == 1
    assert log == ["Connect to a SharePoint Online tenant admin site first"]
    assert sharepoint.requests == []


@pytest.mark.parametrize("command", TENANT_COMMANDS)
def test_requires_admin_site(run, connect, sharepoint, command):
    connect(SITE_URL)

    succeeded, log, calls = run(command)

    assert not succeeded
    assert calls == 1
    assert log == [
        f"{SITE_URL} is not a tenant admin site. Connect to your tenant admin site and try again"
    ]
    assert sharepoint.requests == []


def test_app_list_prints_catalog(run, connect, sharepoint):
    connect(ADMIN_URL)
    sharepoint.route(
        "GET",
        f"{ADMIN_URL}/_api/web/appcatalog/getavailable",
        httpx.Response(200, json={"d": {"results": [{"Id": "1", "Title": "Hello world"}]}}),
    )

    succeeded, log, calls = run(TenantAppListCommand())

    assert succeeded
    assert calls == 1
    assert log == ["Retrieving apps...", "Hello world\t1"]
    digest_request, list_request = sharepoint.requests
    assert digest_request.method == "POST"
    assert list_request.method == "GET"
    assert list_request.headers["X-RequestDigest"] == "abc"


def test_app_list_reports_malformed_response(run, connect, sharepoint):
    connect(ADMIN_URL)
    sharepoint.route(
        "GET",
        f"{ADMIN_URL}/_api/web/appcatalog/getavailable",
        httpx.Response(200, text="<html>not json</html>"),
    )

    succeeded, log, calls = run(TenantAppListCommand())

    assert not succeeded
    assert calls == 1
    assert log[-1].startswith("Error: ")


def test_app_list_reports_token_failure(run, connect, authenticator):
    authenticator.error = "Error getting access token"
    connect(ADMIN_URL)

    succeeded, log, calls = run(TenantAppListCommand(), verbose=True)

    assert not succeeded
    assert calls == 1
    assert log == ["Error: Error getting access token"]


def test_appcatalogurl_get(run, connect, sharepoint):
    connect(ADMIN_URL)
    sharepoint.route(
        "GET",
        f"{ADMIN_URL}/_api/SP_TenantSettings_Current",
        httpx.Response(200, json={"d": {"CorporateCatalogUrl": "https://contoso.sharepoint.com/sites/apps"}}),
    )

    succeeded, log, _ = run(TenantAppCatalogUrlGetCommand())

    assert succeeded
    assert log == ["https://contoso.sharepoint.com/sites/apps"]


def test_appcatalogurl_get_when_not_configured(run, connect, sharepoint):
    connect(ADMIN_URL)
    sharepoint.route(
        "GET",
        f"{ADMIN_URL}/_api/SP_TenantSettings_Current",
        httpx.Response(200, json={"d": {"CorporateCatalogUrl": None}}),
    )

    succeeded, log, _ = run(TenantAppCatalogUrlGetCommand())

    assert succeeded
    assert log == ["Tenant app catalog is not configured"]
