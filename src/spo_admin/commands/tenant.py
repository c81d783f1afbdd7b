"""Commands that must run against the tenant admin site."""
from __future__ import annotations

import argparse

import httpx

from ..models import format_app_rows, parse_apps, unwrap
from .base import CommandContext, SpoCommand


class TenantAppListCommand(SpoCommand):
    name = "tenant app list"
    description = "Retrieves the apps from the tenant app catalog"
    requires_tenant_admin = True

    def execute(self, context: CommandContext, options: argparse.Namespace) -> bool:
        def handle(response: httpx.Response) -> None:
            for line in format_app_rows(parse_apps(response.json())):
                context.log(line)

        context.client.run(
            context.site,
            "GET",
            "/_api/web/appcatalog/getavailable",
            handle,
            announce="Retrieving apps...",
        )
        return True


class TenantAppCatalogUrlGetCommand(SpoCommand):
    name = "tenant appcatalogurl get"
    description = "Gets the URL of the tenant app catalog"
    requires_tenant_admin = True

    def execute(self, context: CommandContext, options: argparse.Namespace) -> bool:
        def handle(response: httpx.Response) -> None:
            settings = unwrap(response.json())
            url = settings.get("CorporateCatalogUrl") if isinstance(settings, dict) else None
            context.log(url or "Tenant app catalog is not configured")

        context.client.run(context.site, "GET", "/_api/SP_TenantSettings_Current", handle)
        return True
