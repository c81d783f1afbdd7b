from __future__ import annotations

import argparse
import logging
import uuid
from typing import Callable, Optional

import httpx

from .audit import JsonAuditLogger
from .auth import SpoAuthenticator
from .commands.base import CommandContext, SpoCommand
from .config import SpoAdminConfig
from .site import SiteStore
from .spo_client import SpoClient

logger = logging.getLogger(__name__)


class SpoSession:
    """Runs commands against the connected site with a fresh client per invocation."""

    def __init__(
        self,
        config: SpoAdminConfig,
        audit_logger: Optional[JsonAuditLogger] = None,
        authenticator: Optional[SpoAuthenticator] = None,
        store: Optional[SiteStore] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.config = config
        self.audit = audit_logger or JsonAuditLogger()
        self.authenticator = authenticator or SpoAuthenticator(config, self.audit)
        self.store = store or SiteStore(config.site_file)
        self.transport = transport

    def with_context(
        self,
        log: Callable[[str], None],
        verbose: bool = False,
        correlation_id: Optional[str] = None,
    ) -> CommandContext:
        client = SpoClient(
            authenticator=self.authenticator,
            audit_logger=self.audit,
            log=log,
            verbose=verbose,
            timeout=self.config.timeout,
            max_retries=self.config.max_retries,
            transport=self.transport,
            correlation_id=correlation_id,
        )
        return CommandContext(
            site=self.store.load(),
            client=client,
            store=self.store,
            authenticator=self.authenticator,
            log=log,
        )

    def run_command(
        self,
        command: SpoCommand,
        options: argparse.Namespace,
        log: Callable[[str], None] = print,
        correlation_id: Optional[str] = None,
    ) -> bool:
        correlation_id = correlation_id or str(uuid.uuid4())
        verbose = bool(getattr(options, "verbose", False))
        if verbose:
            self.audit.set_level(logging.INFO)

        context = self.with_context(log, verbose=verbose, correlation_id=correlation_id)
        self.audit.info("command_started", command=command.name, correlation_id=correlation_id)
        try:
            succeeded = command.action(context, options, lambda: None)
        finally:
            context.client.close()

        if succeeded:
            self.audit.info("command_completed", command=command.name, correlation_id=correlation_id)
        else:
            self.audit.info("command_failed", command=command.name, correlation_id=correlation_id)
        return succeeded
