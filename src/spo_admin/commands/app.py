"""Commands managing apps in the tenant app catalog from a connected site."""
from __future__ import annotations

import argparse
import uuid
from pathlib import Path
from typing import Optional
from urllib.parse import quote

import httpx

from ..models import AppMetadata, format_app_rows, parse_apps, unwrap
from .base import CommandContext, SpoCommand

AVAILABLE_APPS = "/_api/web/tenantappcatalog/AvailableApps"


def _is_guid(value: str) -> bool:
    try:
        uuid.UUID(value)
    except (TypeError, ValueError):
        return False
    return True


class AppListCommand(SpoCommand):
    name = "app list"
    description = "Lists apps available in the tenant app catalog"

    def execute(self, context: CommandContext, options: argparse.Namespace) -> bool:
        def handle(response: httpx.Response) -> None:
            for line in format_app_rows(parse_apps(response.json())):
                context.log(line)

        context.client.run(context.site, "GET", AVAILABLE_APPS, handle, announce="Retrieving apps...")
        return True


class _AppIdCommand(SpoCommand):
    """Base for commands acting on a single app by its ID."""

    def add_arguments(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument(
            "-i",
            "--id",
            "--identity",
            dest="id",
            required=True,
            help="ID (GUID) of the app",
        )

    def validate(self, options: argparse.Namespace) -> Optional[str]:
        if not _is_guid(options.id):
            return f"{options.id} is not a valid GUID"
        return None

    def app_path(self, options: argparse.Namespace, operation: str = "") -> str:
        path = f"{AVAILABLE_APPS}/GetByID('{uuid.UUID(options.id)}')"
        return f"{path}/{operation}" if operation else path


class AppGetCommand(_AppIdCommand):
    name = "app get"
    description = "Gets information about an app from the tenant app catalog"

    def execute(self, context: CommandContext, options: argparse.Namespace) -> bool:
        def handle(response: httpx.Response) -> None:
            app = AppMetadata(**unwrap(response.json()))
            for field in ("Title", "Id", "Deployed", "AppCatalogVersion", "InstalledVersion"):
                value = getattr(app, field)
                context.log(f"{field}: {'' if value is None else value}")

        context.client.run(context.site, "GET", self.app_path(options), handle)
        return True


class _AppActionCommand(_AppIdCommand):
    """POSTs to one of the app's action endpoints and reports the outcome."""

    operation: str = ""
    progress: str = ""
    done: str = ""

    def body(self, options: argparse.Namespace) -> dict:
        return {"content": b""}

    def execute(self, context: CommandContext, options: argparse.Namespace) -> bool:
        context.client.run(
            context.site,
            "POST",
            self.app_path(options, self.operation),
            lambda response: None,
            announce=self.progress,
            **self.body(options),
        )
        context.log(self.done)
        return True


class AppInstallCommand(_AppActionCommand):
    name = "app install"
    description = "Installs an app from the tenant app catalog in the site"
    operation = "install"
    progress = "Installing app..."
    done = "App installed"


class AppUninstallCommand(_AppActionCommand):
    name = "app uninstall"
    description = "Uninstalls an app from the site"
    operation = "uninstall"
    progress = "Uninstalling app..."
    done = "App uninstalled"


class AppUpgradeCommand(_AppActionCommand):
    name = "app upgrade"
    description = "Upgrades an app in the site to the catalog version"
    operation = "upgrade"
    progress = "Upgrading app..."
    done = "App upgraded"


class AppDeployCommand(_AppActionCommand):
    name = "app deploy"
    description = "Deploys an app in the tenant app catalog"
    operation = "deploy"
    progress = "Deploying app..."
    done = "App deployed"

    def add_arguments(self, parser: argparse.ArgumentParser) -> None:
        super().add_arguments(parser)
        parser.add_argument(
            "--skip-feature-deployment",
            action="store_true",
            help="Make the solution available to all sites immediately, without installing it",
        )

    def body(self, options: argparse.Namespace) -> dict:
        return {"json": {"skipFeatureDeployment": bool(options.skip_feature_deployment)}}


class AppRetractCommand(_AppActionCommand):
    name = "app retract"
    description = "Retracts an app deployed in the tenant app catalog"
    operation = "retract"
    progress = "Retracting app..."
    done = "App retracted"


class AppRemoveCommand(_AppActionCommand):
    name = "app remove"
    description = "Removes an app from the tenant app catalog"
    operation = "remove"
    progress = "Removing app..."
    done = "App removed"

    def add_arguments(self, parser: argparse.ArgumentParser) -> None:
        super().add_arguments(parser)
        parser.add_argument("--confirm", action="store_true", help="Don't prompt for confirmation")

    def validate(self, options: argparse.Namespace) -> Optional[str]:
        if not options.confirm:
            return "Specify --confirm to remove the app"
        return super().validate(options)


class AppAddCommand(SpoCommand):
    name = "app add"
    description = "Adds an app package to the tenant app catalog"

    def add_arguments(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("-p", "--file-path", required=True, help="Path to the .sppkg or .app file")
        parser.add_argument("--overwrite", action="store_true", help="Replace an existing package")

    def validate(self, options: argparse.Namespace) -> Optional[str]:
        if not Path(options.file_path).expanduser().is_file():
            return f"File {options.file_path} doesn't exist"
        return None

    def execute(self, context: CommandContext, options: argparse.Namespace) -> bool:
        path = Path(options.file_path).expanduser()
        overwrite = "true" if options.overwrite else "false"
        # OData string literals double embedded quotes; the result must survive as one path segment.
        file_name = quote(path.name.replace("'", "''"), safe="")

        def handle(response: httpx.Response) -> None:
            added = unwrap(response.json())
            context.log(str(added.get("UniqueId", "")))

        context.client.run(
            context.site,
            "POST",
            f"/_api/web/tenantappcatalog/Add(overwrite={overwrite}, url='{file_name}')",
            handle,
            announce="Adding app...",
            content=path.read_bytes(),
        )
        return True
