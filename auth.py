import hmac, logging, threading, time
from typing import Dict, Optional
from urllib.parse import urlparse
import msal
from fastapi import Header, Query
from errors import AuthorizationError, SiteConnectionError
from settings import Settings, settings

log = logging.getLogger(__name__)

def sharepoint_scope(site_url: str) -> list[str]:
    parts = urlparse(site_url)
    if not parts.scheme or not parts.netloc:
        raise SiteConnectionError(f"Invalid site URL: '{site_url}'")
    return [f"{parts.scheme}://{parts.netloc}/.default"]

class AuthManager:
    """App-only tokens for SharePoint, cached per resource scope."""
    def __init__(self, config: Settings):
        self.config = config
        self.authority = f"https://login.microsoftonline.com/{config.tenant_id}"
        self._cca: Optional[msal.ConfidentialClientApplication] = None
        self._lock = threading.Lock()
        self.token_cache: Dict[str, dict] = {}

    def _client_credential(self):
        if self.config.certificate_path and self.config.certificate_thumbprint:
            try:
                with open(self.config.certificate_path, "r") as f:
                    return {"private_key": f.read(), "thumbprint": self.config.certificate_thumbprint}
            except OSError as e:
                raise SiteConnectionError(f"Cannot read certificate: {e}") from e
        if self.config.client_secret:
            return self.config.client_secret
        raise SiteConnectionError("No client credential configured: set CLIENT_SECRET or CERTIFICATE_PATH and CERTIFICATE_THUMBPRINT")

    def _app(self) -> msal.ConfidentialClientApplication:
        if self._cca is None:
            self._cca = msal.ConfidentialClientApplication(
                self.config.client_id,
                authority=self.authority,
                client_credential=self._client_credential(),
            )
        return self._cca

    def get_token(self, scope: list[str]) -> str:
        scope_key, now = scope[0], time.time()
        token_info = self.token_cache.get(scope_key, {})
        if token_info.get("token") and token_info.get("expires_at", 0) > now + 60: return token_info["token"]
        with self._lock:
            token_info = self.token_cache.get(scope_key, {})
            if token_info.get("token") and token_info.get("expires_at", 0) > now + 60: return token_info["token"]
            log.info(f"Acquiring new token for scope: {scope_key}")
            result = self._app().acquire_token_for_client(scopes=scope)
            if "access_token" not in result:
                raise SiteConnectionError(f"MSAL auth failed: {result.get('error_description')}")
            self.token_cache[scope_key] = {"token": result["access_token"], "expires_at": now + result.get("expires_in", 3599)}
            return self.token_cache[scope_key]["token"]

auth_manager = AuthManager(settings)

def get_sharepoint_token(site_url: str) -> str:
    return auth_manager.get_token(sharepoint_scope(site_url))

def require_function_key(
    x_functions_key: Optional[str] = Header(None),
    code: Optional[str] = Query(None),
):
    """FastAPI dependency mirroring function-level authorization."""
    expected = settings.function_key
    if not expected:
        log.error("FUNCTION_KEY is not configured; refusing request")
        raise AuthorizationError("Function key is not configured on the server.")
    supplied = x_functions_key or code
    if not supplied or not hmac.compare_digest(supplied, expected):
        raise AuthorizationError()
