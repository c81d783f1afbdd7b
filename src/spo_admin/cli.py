from __future__ import annotations

import argparse
import sys
from typing import Dict, List, Optional, Tuple

from .commands import CommandRegistry, build_registry
from .config import CONFIG_ENV_VAR, SpoAdminConfig
from .errors import SpoAdminError
from .session import SpoSession

EXIT_OK = 0
EXIT_FAILED = 1


def build_parser(registry: CommandRegistry) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="spo-admin",
        description="Manage SharePoint Online from the command line",
    )
    parser.add_argument(
        "--config",
        help=f"Path to the configuration YAML (default: ${CONFIG_ENV_VAR} or ~/.spo-admin/config.yaml)",
    )

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--verbose", action="store_true", help="Runs command with verbose logging")

    groups: Dict[Tuple[str, ...], argparse._SubParsersAction] = {
        (): parser.add_subparsers(dest="command_name", metavar="<command>", required=True)
    }
    for command in registry:
        words = command.name.split()
        for depth in range(1, len(words)):
            prefix = tuple(words[:depth])
            if prefix not in groups:
                group_parser = groups[prefix[:-1]].add_parser(prefix[-1], help=f"{' '.join(prefix)} commands")
                groups[prefix] = group_parser.add_subparsers(
                    dest="_".join(prefix) + "_command", metavar="<command>", required=True
                )
        leaf = groups[tuple(words[:-1])].add_parser(
            words[-1], parents=[common], help=command.description, description=command.description
        )
        command.add_arguments(leaf)
        leaf.set_defaults(command=command)
    return parser


def main(argv: Optional[List[str]] = None, session: Optional[SpoSession] = None) -> int:
    registry = build_registry()
    parser = build_parser(registry)
    args = parser.parse_args(argv)

    try:
        if session is None:
            session = SpoSession(SpoAdminConfig.load(args.config))
        succeeded = session.run_command(args.command, args)
    except SpoAdminError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_FAILED

    return EXIT_OK if succeeded else EXIT_FAILED


if __name__ == "__main__":
    sys.exit(main())
