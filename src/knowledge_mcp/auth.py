"""JWT bearer authentication and access token caching."""

import time
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import httpx
import jwt
from cryptography.hazmat.primitives import serialization

from .exceptions import ConfigurationError, UpstreamProtocolError, UpstreamRequestError

JWT_BEARER_GRANT = "urn:ietf:params:oauth:grant-type:jwt-bearer"

# Assertion lifetime; a short window tolerates clock drift.
ASSERTION_TTL_SECONDS = 3 * 60

# Refresh one minute before Salesforce expires the token.
TOKEN_EXPIRY_BUFFER = timedelta(seconds=60)

DEFAULT_EXPIRES_IN = 3600


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuthBase:
    """Holds the current access token, its instance URL and expiry."""

    def __init__(self):
        self.access_token: Optional[str] = None
        self.instance_url: Optional[str] = None
        self.token_expiry: Optional[datetime] = None

    def is_token_valid(self) -> bool:
        """Check if the current token is still valid."""
        if not self.access_token or not self.instance_url or not self.token_expiry:
            return False
        return _utcnow() < self.token_expiry

    async def get_access_token(self) -> str:
        """Return the cached token, exchanging for a new one when absent or expired."""
        if not self.is_token_valid():
            await self.authenticate()
        return self.access_token

    async def get_headers(self) -> Dict[str, str]:
        """Get authentication headers."""
        token = await self.get_access_token()

        return {
            "Authorization": f"Bearer {token}",
            "Accept": "application/json"
        }

    async def authenticate(self) -> None:
        """Authenticate with Salesforce (to be implemented by subclasses)."""
        raise NotImplementedError


class JWTAuth(AuthBase):
    """JWT Bearer Token Flow authentication."""

    def __init__(
        self,
        client_id: Optional[str],
        username: Optional[str],
        private_key_file: str,
        login_url: str = "https://login.salesforce.com",
        timeout: Optional[float] = None
    ):
        super().__init__()
        self.client_id = client_id
        self.username = username
        self.private_key_file = private_key_file
        self.login_url = login_url.rstrip("/")
        self.timeout = timeout
        self._private_key = None

    @property
    def token_url(self) -> str:
        return f"{self.login_url}/services/oauth2/token"

    def _load_private_key(self) -> Any:
        """Load the private key from file, once per instance."""
        if self._private_key is None:
            if not self.private_key_file:
                raise ConfigurationError(
                    "Missing Salesforce JWT key path. Set SALESFORCE_JWT_KEY_PATH.",
                    setting="SALESFORCE_JWT_KEY_PATH"
                )
            try:
                with open(self.private_key_file, 'rb') as key_file:
                    self._private_key = serialization.load_pem_private_key(
                        key_file.read(),
                        password=None
                    )
            except FileNotFoundError:
                raise ConfigurationError(
                    f"Salesforce JWT key not found at {self.private_key_file}",
                    setting="SALESFORCE_JWT_KEY_PATH"
                )
            except (OSError, ValueError, TypeError) as e:
                raise ConfigurationError(
                    f"Salesforce JWT key at {self.private_key_file} could not be read: {e}",
                    setting="SALESFORCE_JWT_KEY_PATH"
                )
        return self._private_key

    def build_assertion(self) -> str:
        """Create a signed JWT assertion for the token exchange."""
        if not self.client_id:
            raise ConfigurationError(
                "Missing Salesforce client id. Set SALESFORCE_CLIENT_ID.",
                setting="SALESFORCE_CLIENT_ID"
            )
        if not self.username:
            raise ConfigurationError(
                "Missing Salesforce username. Set SALESFORCE_USERNAME.",
                setting="SALESFORCE_USERNAME"
            )

        claims = {
            "iss": self.client_id,
            "sub": self.username,
            "aud": self.login_url,
            "exp": int(time.time()) + ASSERTION_TTL_SECONDS
        }

        private_key = self._load_private_key()

        return jwt.encode(
            claims,
            private_key,
            algorithm="RS256"
        )

    async def authenticate(self) -> None:
        """Exchange a fresh assertion for an access token."""
        data = {
            "grant_type": JWT_BEARER_GRANT,
            "assertion": self.build_assertion()
        }

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.post(self.token_url, data=data)
                response.raise_for_status()
                result = response.json()
            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                raise UpstreamRequestError(
                    f"Failed to fetch Salesforce access token ({status}): {_token_error_message(e)}",
                    upstream_status=status,
                    operation="token_exchange"
                )
            except httpx.HTTPError as e:
                raise UpstreamRequestError(
                    f"Failed to fetch Salesforce access token: {e}",
                    operation="token_exchange"
                )
            except ValueError:
                raise UpstreamProtocolError(
                    "Salesforce token response was not valid JSON",
                    operation="token_exchange"
                )

        result = result if isinstance(result, dict) else {}
        access_token = result.get("access_token")
        instance_url = result.get("instance_url")
        if not access_token or not instance_url:
            raise UpstreamProtocolError(
                "Salesforce token response missing required fields (access_token, instance_url)",
                operation="token_exchange"
            )

        try:
            expires_in = float(result.get("expires_in") or DEFAULT_EXPIRES_IN)
        except (TypeError, ValueError):
            expires_in = DEFAULT_EXPIRES_IN

        self.access_token = access_token
        self.instance_url = instance_url.rstrip("/")
        self.token_expiry = _utcnow() + timedelta(seconds=expires_in) - TOKEN_EXPIRY_BUFFER


def _token_error_message(error: httpx.HTTPStatusError) -> str:
    try:
        error_data = error.response.json() if error.response.content else {}
    except ValueError:
        error_data = {}
    if isinstance(error_data, dict):
        message = error_data.get("error_description") or error_data.get("error")
        if message:
            return str(message)
    return str(error)
