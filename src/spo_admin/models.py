"""Response shapes returned by the SharePoint REST API."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict


class ContextInfo(BaseModel):
    FormDigestValue: str
    FormDigestTimeoutSeconds: Optional[int] = None
    WebFullUrl: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class AppMetadata(BaseModel):
    Id: str
    Title: str = ""
    Deployed: Optional[bool] = None
    AppCatalogVersion: Optional[str] = None
    InstalledVersion: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


def unwrap(payload: Dict[str, Any]) -> Any:
    """Strip the OData envelope.

    Handles the verbose shape (``{"d": {"results": [...]}}`` or ``{"d": {...}}``)
    and the nometadata shape (``{"value": [...]}`` or a bare object).
    """
    if "d" in payload:
        inner = payload["d"]
        if isinstance(inner, dict) and "results" in inner:
            return inner["results"]
        return inner
    if "value" in payload:
        return payload["value"]
    return payload


def parse_apps(payload: Dict[str, Any]) -> List[AppMetadata]:
    results = unwrap(payload)
    if not isinstance(results, list):
        raise ValueError("Expected a collection of apps in the response")
    return [AppMetadata(**item) for item in results]


def format_app_rows(apps: List[AppMetadata]) -> List[str]:
    return [f"{app.Title}\t{app.Id}" for app in apps]
