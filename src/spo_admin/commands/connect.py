"""Session commands: connect, disconnect and status."""
from __future__ import annotations

import argparse

from ..site import Site, normalize_site_url
from .base import CommandContext, SpoCommand


class ConnectCommand(SpoCommand):
    name = "connect"
    description = "Connects to a SharePoint Online site"
    requires_site = False

    def add_arguments(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("url", help="URL of the site or tenant admin site to connect to")

    def execute(self, context: CommandContext, options: argparse.Namespace) -> bool:
        try:
            url = normalize_site_url(options.url)
        except ValueError as exc:
            context.log(str(exc))
            return False

        site = Site(url=url, connected=True)
        if options.verbose:
            context.log(f"Authenticating with SharePoint Online at {site.resource}...")
        context.authenticator.acquire_token(site.resource)
        context.store.save(site)
        context.site = site
        context.log(f"Connected to {url}")
        return True


class DisconnectCommand(SpoCommand):
    name = "disconnect"
    description = "Disconnects from the SharePoint Online site"
    requires_site = False

    def execute(self, context: CommandContext, options: argparse.Namespace) -> bool:
        previous = context.store.clear()
        context.authenticator.sign_out()
        context.site = Site()
        if previous:
            context.log(f"Disconnected from {previous.url}")
        else:
            context.log("Not connected")
        return True


class StatusCommand(SpoCommand):
    name = "status"
    description = "Shows the SharePoint Online site you are connected to"
    requires_site = False

    def execute(self, context: CommandContext, options: argparse.Namespace) -> bool:
        if context.site.connected:
            context.log(f"Connected to {context.site.url}")
        else:
            context.log("Not connected to SharePoint Online")
        return True
