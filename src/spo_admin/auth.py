from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Callable, Dict, Optional, Tuple

import msal
from azure.core.exceptions import ClientAuthenticationError
from azure.identity import ManagedIdentityCredential

from .audit import JsonAuditLogger
from .config import (
    CertificateAuth,
    ClientSecretAuth,
    DeviceCodeAuth,
    ManagedIdentityAuth,
    SpoAdminConfig,
)
from .errors import AuthenticationError, ConfigError

logger = logging.getLogger(__name__)

# Tokens this close to expiry are treated as expired.
EXPIRY_SKEW_SECONDS = 300


def resource_scopes(resource: str) -> list:
    return [f"{resource.rstrip('/')}/.default"]


class SpoAuthenticator:
    """Acquires access tokens for a SharePoint resource (https://<tenant>.sharepoint.com).

    Confidential and device code flows go through MSAL, whose token cache
    handles refresh. The device code cache is persisted in the state
    directory so a login survives between invocations. Managed identity
    tokens are cached in memory until shortly before they expire.
    """

    def __init__(
        self,
        config: SpoAdminConfig,
        audit_logger: JsonAuditLogger,
        prompt: Callable[[str], None] = print,
    ):
        self.config = config
        self.audit = audit_logger
        self.prompt = prompt
        self._app: Optional[msal.ClientApplication] = None
        self._cache: Optional[msal.SerializableTokenCache] = None
        self._mi_tokens: Dict[str, Tuple[str, float]] = {}

    def acquire_token(self, resource: str) -> str:
        auth_config = self.config.auth
        scopes = resource_scopes(resource)

        if isinstance(auth_config, ManagedIdentityAuth):
            token = self._acquire_managed_identity(resource, auth_config)
        elif isinstance(auth_config, DeviceCodeAuth):
            token = self._acquire_device_code(scopes)
        elif isinstance(auth_config, (ClientSecretAuth, CertificateAuth)):
            app = self._confidential_app(auth_config)
            result = app.acquire_token_silent(scopes, account=None)
            if not result:
                result = app.acquire_token_for_client(scopes=scopes)
            token = self._extract_token(result)
        else:
            raise ConfigError("Unsupported authentication configuration")

        self.audit.info("token_acquired", resource=resource, auth_type=auth_config.type)
        return token

    def sign_out(self) -> None:
        """Forget cached accounts and tokens."""
        self._mi_tokens.clear()
        if isinstance(self.config.auth, DeviceCodeAuth):
            app = self._public_app(self.config.auth)
            for account in app.get_accounts():
                app.remove_account(account)
            self._persist_cache()

    def _acquire_device_code(self, scopes: list) -> str:
        app = self._public_app(self.config.auth)  # type: ignore[arg-type]
        accounts = app.get_accounts()
        result = app.acquire_token_silent(scopes, account=accounts[0]) if accounts else None
        if not result:
            flow = app.initiate_device_flow(scopes=scopes)
            if "user_code" not in flow:
                raise AuthenticationError(
                    f"Failed to start device code login: {flow.get('error_description') or json.dumps(flow)}"
                )
            self.prompt(flow["message"])
            result = app.acquire_token_by_device_flow(flow)
        token = self._extract_token(result)
        self._persist_cache()
        return token

    def _acquire_managed_identity(self, resource: str, auth_config: ManagedIdentityAuth) -> str:
        cached = self._mi_tokens.get(resource)
        if cached and cached[1] - EXPIRY_SKEW_SECONDS > time.time():
            return cached[0]
        credential = ManagedIdentityCredential(client_id=auth_config.client_id)
        try:
            result = credential.get_token(*resource_scopes(resource))
        except ClientAuthenticationError as exc:
            raise AuthenticationError(f"Token acquisition failed: {exc.message}") from exc
        self._mi_tokens[resource] = (result.token, float(result.expires_on))
        return result.token

    def _confidential_app(self, auth_config) -> msal.ConfidentialClientApplication:
        if self._app is None:
            if isinstance(auth_config, ClientSecretAuth):
                credential = auth_config.client_secret.resolve()
            else:
                credential = self._load_certificate(auth_config)
            self._app = msal.ConfidentialClientApplication(
                client_id=auth_config.client_id,
                client_credential=credential,
                authority=f"{auth_config.authority_host}/{auth_config.tenant}",
                token_cache=msal.TokenCache(),
            )
        return self._app  # type: ignore[return-value]

    def _public_app(self, auth_config: DeviceCodeAuth) -> msal.PublicClientApplication:
        if self._app is None:
            self._cache = msal.SerializableTokenCache()
            cache_file = self.config.token_cache_file
            if cache_file.exists():
                self._cache.deserialize(cache_file.read_text(encoding="utf-8"))
            self._app = msal.PublicClientApplication(
                client_id=auth_config.client_id,
                authority=f"{auth_config.authority_host}/{auth_config.tenant}",
                token_cache=self._cache,
            )
        return self._app  # type: ignore[return-value]

    def _persist_cache(self) -> None:
        if self._cache is None or not self._cache.has_state_changed:
            return
        cache_file = self.config.token_cache_file
        cache_file.parent.mkdir(parents=True, exist_ok=True)
        cache_file.write_text(self._cache.serialize(), encoding="utf-8")
        cache_file.chmod(0o600)

    @staticmethod
    def _extract_token(result: Optional[dict]) -> str:
        if not result or "access_token" not in result:
            detail = (result or {}).get("error_description") or json.dumps(result)
            raise AuthenticationError(f"Token acquisition failed: {detail}")
        return result["access_token"]

    @staticmethod
    def _load_certificate(auth_config: CertificateAuth) -> dict:
        path = Path(auth_config.certificate_path).expanduser()
        password = None
        if auth_config.certificate_password:
            password = auth_config.certificate_password.resolve()
        try:
            private_key = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigError(f"Failed to read certificate at {path}: {exc}") from exc

        return {"private_key": private_key, "thumbprint": auth_config.thumbprint, "passphrase": password}
