from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, Optional, TypeVar

import httpx

from .audit import JsonAuditLogger
from .auth import SpoAuthenticator
from .models import ContextInfo, unwrap
from .site import Site
from .errors import SpoRequestError

logger = logging.getLogger(__name__)

T = TypeVar("T")

ACCEPT_NOMETADATA = "application/json;odata=nometadata"
ACCEPT_VERBOSE = "application/json;odata=verbose"
RETRY_STATUSES = (429, 503)


def mask_token(token: str) -> str:
    return f"{token[:8]}..." if len(token) > 8 else "***"


class SpoClient:
    """SharePoint REST client for one command invocation.

    ``run`` carries the request chain every command shares: acquire a token
    for the site's resource, fetch a form digest from /_api/contextinfo, then
    send the target request with both. Each step depends on the previous
    one; the first failure aborts the chain.
    """

    def __init__(
        self,
        authenticator: SpoAuthenticator,
        audit_logger: JsonAuditLogger,
        log: Callable[[str], None],
        verbose: bool = False,
        timeout: float = 30.0,
        max_retries: int = 0,
        transport: Optional[httpx.BaseTransport] = None,
        correlation_id: Optional[str] = None,
    ):
        self.authenticator = authenticator
        self.audit = audit_logger
        self.log = log
        self.verbose = verbose
        self.max_retries = max_retries
        self.correlation_id = correlation_id
        self.session = httpx.Client(timeout=timeout, transport=transport)

    def close(self) -> None:
        self.session.close()

    def run(
        self,
        site: Site,
        method: str,
        path: str,
        handle: Callable[[httpx.Response], T],
        accept: str = ACCEPT_VERBOSE,
        announce: Optional[str] = None,
        **kwargs: Any,
    ) -> T:
        token = self.authenticator.acquire_token(site.resource)
        if self.verbose:
            self.log(f"Retrieved access token {mask_token(token)}")

        context_info = self.get_context_info(site, token)
        if announce:
            self.log(announce)

        headers = kwargs.pop("headers", {})
        headers.update(
            {
                "authorization": f"Bearer {token}",
                "accept": accept,
                "X-RequestDigest": context_info.FormDigestValue,
            }
        )
        response = self.request(method, f"{site.url}{path}", headers=headers, **kwargs)
        return handle(response)

    def get_context_info(self, site: Site, token: str) -> ContextInfo:
        headers = {
            "authorization": f"Bearer {token}",
            "accept": ACCEPT_NOMETADATA,
        }
        response = self.request("POST", f"{site.url}/_api/contextinfo", headers=headers)
        payload = unwrap(response.json())
        if isinstance(payload, dict) and "GetContextWebInformation" in payload:
            payload = payload["GetContextWebInformation"]
        return ContextInfo(**payload)

    def request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        headers: Dict[str, str] = kwargs.pop("headers", {})
        if self.verbose:
            self._log_request(method, url, headers)
        backoff = 1.0

        for attempt in range(1, self.max_retries + 2):
            try:
                response = self.session.request(method, url, headers=headers, **kwargs)
            except httpx.TransportError as exc:
                self.audit.error(
                    "spo_request_failed",
                    correlation_id=self.correlation_id,
                    status=-1,
                    url=url,
                    error=str(exc),
                )
                raise SpoRequestError(-1, url, f"{type(exc).__name__}: {exc}") from exc

            if response.status_code in RETRY_STATUSES and attempt <= self.max_retries:
                retry_after = self._get_retry_after_seconds(response)
                if retry_after is None:
                    retry_after = backoff
                self.audit.warning(
                    "spo_throttled",
                    correlation_id=self.correlation_id,
                    status=response.status_code,
                    retry_after=retry_after,
                    attempt=attempt,
                )
                time.sleep(retry_after)
                backoff = min(backoff * 2, 30)
                continue

            if response.status_code >= 400:
                self.audit.error(
                    "spo_request_failed",
                    correlation_id=self.correlation_id,
                    status=response.status_code,
                    url=url,
                    body=response.text,
                )
                raise SpoRequestError(response.status_code, url, _error_message(response))

            self.audit.info(
                "spo_request_succeeded",
                correlation_id=self.correlation_id,
                status=response.status_code,
                url=url,
            )
            if self.verbose:
                self.log("Response:")
                self.log(response.text)
                self.log("")
            return response

    def _log_request(self, method: str, url: str, headers: Dict[str, str]) -> None:
        shown = dict(headers)
        if "authorization" in shown:
            shown["authorization"] = f"Bearer {mask_token(shown['authorization'][len('Bearer '):])}"
        self.log("Executing web request...")
        self.log(f"{method} {url}")
        for name, value in shown.items():
            self.log(f"  {name}: {value}")
        self.log("")

    def _get_retry_after_seconds(self, response: httpx.Response) -> Optional[float]:
        retry_after = response.headers.get("Retry-After")
        if retry_after is None:
            return None
        try:
            return float(retry_after)
        except ValueError:
            return None


def _error_message(response: httpx.Response) -> str:
    """Pull the message out of a SharePoint error body, falling back to the raw text."""
    text = response.text
    try:
        payload = response.json()
    except ValueError:
        return text or f"HTTP {response.status_code}"
    if isinstance(payload, dict):
        error = payload.get("error") or payload.get("odata.error")
        if isinstance(error, dict):
            message = error.get("message")
            if isinstance(message, dict) and message.get("value"):
                return message["value"]
            if isinstance(message, str) and message:
                return message
    return text or f"HTTP {response.status_code}"
