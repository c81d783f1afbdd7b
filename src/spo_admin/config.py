from __future__ import annotations

import os
from pathlib import Path
from typing import Literal, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ConfigError

CONFIG_ENV_VAR = "SPO_ADMIN_CONFIG"
DEFAULT_STATE_DIR = Path("~/.spo-admin")
DEFAULT_CONFIG_PATH = DEFAULT_STATE_DIR / "config.yaml"

# Multi-tenant public client registered for SharePoint Online management tooling.
PNP_MANAGEMENT_SHELL_CLIENT_ID = "31359c7f-bd7e-475c-86db-fdb8c937548e"


class SecretRef(BaseModel):
    """Reference to a secret source without storing the secret in code.

    Secrets should be supplied as environment variables injected at runtime.
    Inline values are accepted for local development only.
    """

    env: Optional[str] = Field(
        default=None, description="Environment variable name containing the secret"
    )
    value: Optional[str] = Field(
        default=None,
        description="Inline value (use only for local development; avoid in production)",
    )
    key_vault_secret_uri: Optional[str] = Field(
        default=None,
        description="URI of the Key Vault secret. Resolve via managed identity at runtime.",
    )

    model_config = ConfigDict(extra="forbid")

    def resolve(self) -> str:
        if self.env:
            env_value = os.getenv(self.env)
            if env_value:
                return env_value
            raise ConfigError(f"Environment variable {self.env} is not set")
        if self.value:
            return self.value
        if self.key_vault_secret_uri:
            raise ConfigError(
                "Key Vault secret resolution is not supported. "
                "Export the secret to an environment variable and reference it with 'env'."
            )
        raise ConfigError("No secret reference provided for resolution")


class DeviceCodeAuth(BaseModel):
    type: Literal["device_code"] = "device_code"
    client_id: str = PNP_MANAGEMENT_SHELL_CLIENT_ID
    tenant: str = Field(default="common", description="Tenant ID or domain, or 'common'")
    authority_host: str = Field(
        default="https://login.microsoftonline.com",
        description="AAD authority host",
    )

    model_config = ConfigDict(extra="forbid")


class ClientSecretAuth(BaseModel):
    type: Literal["client_secret"]
    client_id: str
    client_secret: SecretRef
    tenant: str
    authority_host: str = Field(
        default="https://login.microsoftonline.com",
        description="AAD authority host",
    )

    model_config = ConfigDict(extra="forbid")


class CertificateAuth(BaseModel):
    type: Literal["certificate"]
    client_id: str
    certificate_path: Path
    thumbprint: str
    certificate_password: Optional[SecretRef] = None
    tenant: str
    authority_host: str = Field(
        default="https://login.microsoftonline.com",
        description="AAD authority host",
    )

    model_config = ConfigDict(extra="forbid")

    @field_validator("thumbprint")
    @classmethod
    def normalize_thumbprint(cls, value: str) -> str:
        value = value.replace(":", "").strip()
        if not value:
            raise ValueError("thumbprint is required for certificate auth")
        return value.upper()


class ManagedIdentityAuth(BaseModel):
    type: Literal["managed_identity"]
    client_id: Optional[str] = Field(
        default=None, description="Optional user-assigned managed identity client ID"
    )

    model_config = ConfigDict(extra="forbid")


AuthConfig = Union[DeviceCodeAuth, ClientSecretAuth, CertificateAuth, ManagedIdentityAuth]


class SpoAdminConfig(BaseModel):
    auth: AuthConfig = Field(default_factory=DeviceCodeAuth, discriminator="type")
    state_dir: Path = Field(
        default=DEFAULT_STATE_DIR,
        validate_default=True,
        description="Directory holding the connected site and the token cache",
    )
    timeout: float = Field(default=30.0, gt=0)
    max_retries: int = Field(
        default=0,
        ge=0,
        description="Retries on 429/503 responses. 0 disables retrying.",
    )

    model_config = ConfigDict(extra="forbid")

    @field_validator("state_dir")
    @classmethod
    def expand_state_dir(cls, value: Path) -> Path:
        return value.expanduser()

    @property
    def site_file(self) -> Path:
        return self.state_dir / "site.json"

    @property
    def token_cache_file(self) -> Path:
        return self.state_dir / "msal_cache.json"

    @classmethod
    def load(cls, path: Union[str, Path, None] = None) -> "SpoAdminConfig":
        explicit = path or os.getenv(CONFIG_ENV_VAR)
        config_path = Path(explicit).expanduser() if explicit else DEFAULT_CONFIG_PATH.expanduser()
        if not config_path.exists():
            if explicit:
                raise ConfigError(f"Configuration file not found: {config_path}")
            return cls()

        try:
            with config_path.open("r", encoding="utf-8") as handle:
                raw = yaml.safe_load(handle) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Failed to parse {config_path}: {exc}") from exc

        try:
            return cls(**raw)
        except ValidationError as exc:
            raise ConfigError(f"Invalid configuration in {config_path}: {exc}") from exc
