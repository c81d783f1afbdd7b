"""Connected SharePoint site, persisted between invocations."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, ValidationError

from .errors import ConfigError


class Site(BaseModel):
    url: str = ""
    connected: bool = False

    model_config = ConfigDict(extra="ignore")

    @property
    def resource(self) -> str:
        """Scheme and host of the site: the audience tokens are requested for."""
        parsed = urlparse(self.url)
        return f"{parsed.scheme}://{parsed.netloc}"

    def is_tenant_admin_site(self) -> bool:
        host = urlparse(self.url).netloc.lower()
        return host.endswith("-admin.sharepoint.com")


def normalize_site_url(url: str) -> str:
    """Validate a SharePoint Online URL and strip the trailing slash."""
    parsed = urlparse(url.strip())
    if parsed.scheme != "https" or not parsed.netloc:
        raise ValueError(f"{url} is not a valid SharePoint Online site URL")
    if not parsed.netloc.lower().endswith(".sharepoint.com"):
        raise ValueError(f"{url} is not a valid SharePoint Online site URL")
    return f"https://{parsed.netloc}{parsed.path}".rstrip("/")


class SiteStore:
    """Reads and writes the connected site to a JSON file."""

    def __init__(self, path: Path):
        self.path = path

    def load(self) -> Site:
        if not self.path.exists():
            return Site()
        try:
            return Site(**json.loads(self.path.read_text(encoding="utf-8")))
        except (ValueError, ValidationError) as exc:
            raise ConfigError(f"Corrupt site state in {self.path}: {exc}") from exc

    def save(self, site: Site) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(site.model_dump_json(), encoding="utf-8")

    def clear(self) -> Optional[Site]:
        """Remove the stored site, returning it if one was connected."""
        site = self.load()
        if self.path.exists():
            self.path.unlink()
        return site if site.connected else None
