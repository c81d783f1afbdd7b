from __future__ import annotations


class SpoAdminError(Exception):
    """Base class for errors raised by spo-admin."""


class ConfigError(SpoAdminError):
    pass


class AuthenticationError(SpoAdminError):
    pass


class SpoRequestError(SpoAdminError):
    """A SharePoint REST call failed.

    ``status`` is the HTTP status code, or -1 when the request never got a
    response (DNS, TLS, timeout).
    """

    def __init__(self, status: int, url: str, message: str = ""):
        super().__init__(message or f"HTTP {status} for {url}")
        self.status = status
        self.url = url
