"""Shared fixtures: a stub authenticator and a recording SharePoint fake."""
from __future__ import annotations

import argparse
import io
from typing import Callable, Dict, List, Optional

import httpx
import pytest

from spo_admin.audit import JsonAuditLogger
from spo_admin.config import SpoAdminConfig
from spo_admin.errors import AuthenticationError
from spo_admin.session import SpoSession
from spo_admin.site import Site, SiteStore

SITE_URL = "https://contoso.sharepoint.com/sites/apps"
ADMIN_URL = "https://contoso-admin.sharepoint.com"


class StubAuthenticator:
    def __init__(self, token: str = "ABCDEFGHIJKL", error: Optional[str] = None):
        self.token = token
        self.error = error
        self.resources: List[str] = []
        self.signed_out = False

    def acquire_token(self, resource: str) -> str:
        self.resources.append(resource)
        if self.error:
            raise AuthenticationError(self.error)
        return self.token

    def sign_out(self) -> None:
        self.signed_out = True


class FakeSharePoint:
    """Answers /_api/contextinfo and delegates everything else to per-test routes."""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.routes: Dict[str, Callable[[httpx.Request], httpx.Response]] = {}

    def route(self, method: str, url: str, response: httpx.Response) -> None:
        self.routes[f"{method} {httpx.URL(url)}"] = lambda request: response

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path.endswith("/_api/contextinfo"):
            auth = request.headers.get("authorization", "")
            accept = request.headers.get("accept", "")
            if request.method == "POST" and auth.startswith("Bearer ") and accept.startswith("application/json"):
                return httpx.Response(200, json={"FormDigestValue": "abc"})
            return httpx.Response(400, text="Invalid request")
        handler = self.routes.get(f"{request.method} {request.url}")
        if handler is None:
            return httpx.Response(404, json={"error": {"code": "404", "message": {"value": "Not found"}}})
        return handler(request)

    def last(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture
def sharepoint() -> FakeSharePoint:
    return FakeSharePoint()


@pytest.fixture
def authenticator() -> StubAuthenticator:
    return StubAuthenticator()


@pytest.fixture
def store(tmp_path) -> SiteStore:
    return SiteStore(tmp_path / "site.json")


@pytest.fixture
def session(tmp_path, sharepoint, authenticator, store) -> SpoSession:
    config = SpoAdminConfig(state_dir=tmp_path)
    audit = JsonAuditLogger(name=f"spo_admin.test.{tmp_path.name}", stream=io.StringIO())
    return SpoSession(
        config,
        audit_logger=audit,
        authenticator=authenticator,  # type: ignore[arg-type]
        store=store,
        transport=httpx.MockTransport(sharepoint),
    )


@pytest.fixture
def connect(store) -> Callable[[str], None]:
    def _connect(url: str = SITE_URL) -> None:
        store.save(Site(url=url, connected=True))

    return _connect


@pytest.fixture
def run(session):
    """Run a command with options, returning (succeeded, log lines, callback count)."""

    def _run(command, **options):
        options.setdefault("verbose", False)
        log: List[str] = []
        calls: List[int] = []
        context = session.with_context(log.append, verbose=options["verbose"])
        try:
            succeeded = command.action(context, argparse.Namespace(**options), lambda: calls.append(1))
        finally:
            context.client.close()
        return succeeded, log, len(calls)

    return _run
