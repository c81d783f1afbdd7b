from __future__ import annotations

import argparse
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from ..auth import SpoAuthenticator
from ..site import Site, SiteStore
from ..spo_client import SpoClient


@dataclass
class CommandContext:
    site: Site
    client: SpoClient
    store: SiteStore
    authenticator: SpoAuthenticator
    log: Callable[[str], None]


class SpoCommand(ABC):
    """Base class for all commands.

    ``action`` is the only entry point callers use. It checks the site
    preconditions, runs ``execute`` and reports any failure as an
    ``Error:`` line. The completion callback fires exactly once whatever
    happens, and nothing raises past it.
    """

    name: str = ""
    description: str = ""
    requires_site: bool = True
    requires_tenant_admin: bool = False

    def add_arguments(self, parser: argparse.ArgumentParser) -> None:
        """Register command-specific options."""

    def validate(self, options: argparse.Namespace) -> Optional[str]:
        """Return an error message when the options are unusable."""
        return None

    @abstractmethod
    def execute(self, context: CommandContext, options: argparse.Namespace) -> bool:
        """Run the command. Return False to report failure without raising."""

    def action(
        self,
        context: CommandContext,
        options: argparse.Namespace,
        cb: Callable[[], None],
    ) -> bool:
        succeeded = False
        try:
            if self._check_site(context):
                problem = self.validate(options)
                if problem:
                    context.log(problem)
                else:
                    succeeded = self.execute(context, options) is not False
        except Exception as exc:
            context.log(f"Error: {exc}")
        finally:
            cb()
        return succeeded

    def _check_site(self, context: CommandContext) -> bool:
        if not self.requires_site:
            return True
        site = context.site
        if self.requires_tenant_admin:
            if not site.connected:
                context.log("Connect to a SharePoint Online tenant admin site first")
                return False
            if not site.is_tenant_admin_site():
                context.log(
                    f"{site.url} is not a tenant admin site. "
                    "Connect to your tenant admin site and try again"
                )
                return False
            return True
        if not site.connected:
            context.log("Connect to a SharePoint Online site first")
            return False
        return True


class CommandRegistry:
    """Registry of commands keyed by their space-separated name."""

    def __init__(self):
        self._commands: Dict[str, SpoCommand] = {}

    def register(self, command: SpoCommand) -> None:
        self._commands[command.name] = command

    def list_commands(self) -> List[str]:
        return sorted(self._commands.keys())

    def __iter__(self):
        return (self._commands[name] for name in self.list_commands())
