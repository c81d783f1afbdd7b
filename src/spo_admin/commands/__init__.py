"""Command system for spo-admin.

Each command subclasses SpoCommand and implements:
- name: space-separated command name (e.g. "app list")
- description: one-line help
- execute(context, options): the command logic
"""

from .app import (
    AppAddCommand,
    AppDeployCommand,
    AppGetCommand,
    AppInstallCommand,
    AppListCommand,
    AppRemoveCommand,
    AppRetractCommand,
    AppUninstallCommand,
    AppUpgradeCommand,
)
from .base import CommandContext, CommandRegistry, SpoCommand
from .connect import ConnectCommand, DisconnectCommand, StatusCommand
from .tenant import TenantAppCatalogUrlGetCommand, TenantAppListCommand


def build_registry() -> CommandRegistry:
    registry = CommandRegistry()
    for command in (
        ConnectCommand(),
        DisconnectCommand(),
        StatusCommand(),
        AppAddCommand(),
        AppDeployCommand(),
        AppGetCommand(),
        AppInstallCommand(),
        AppListCommand(),
        AppRemoveCommand(),
        AppRetractCommand(),
        AppUninstallCommand(),
        AppUpgradeCommand(),
        TenantAppListCommand(),
        TenantAppCatalogUrlGetCommand(),
    ):
        registry.register(command)
    return registry


__all__ = ["CommandContext", "CommandRegistry", "SpoCommand", "build_registry"]
