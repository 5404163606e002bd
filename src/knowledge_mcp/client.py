"""Salesforce REST gateway used by the article service."""

from typing import Any, Dict, Optional

import httpx

from .auth import AuthBase, JWTAuth
from .config import KnowledgeConfig
from .exceptions import UpstreamProtocolError, UpstreamRequestError


class SalesforceClient:
    """Authenticated GET access to the Salesforce REST API.

    Every failure surfaces immediately as an UpstreamRequestError; nothing is
    retried here.
    """

    def __init__(
        self,
        auth: AuthBase,
        api_version: str = "60.0",
        timeout: Optional[float] = 30
    ):
        self.auth = auth
        self.api_version = api_version
        self.timeout = timeout
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        """Async context manager entry."""
        if not self._client:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.aclose()

    async def aclose(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def data_path(self) -> str:
        return f"/services/data/v{self.api_version}"

    async def salesforce_get(
        self,
        pathname: str,
        params: Optional[Dict[str, Any]] = None
    ) -> Any:
        """Make an authenticated GET request against the instance URL."""
        headers = await self.auth.get_headers()
        if not self.auth.instance_url:
            raise UpstreamProtocolError(
                "Salesforce instance URL is not set after authentication.",
                operation=pathname
            )

        url = f"{self.auth.instance_url}{pathname}"

        if not self._client:
            self._client = httpx.AsyncClient(timeout=self.timeout)

        try:
            response = await self._client.get(url, headers=headers, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            raise UpstreamRequestError(
                f"Salesforce request failed ({status}): {_error_message(e)}",
                upstream_status=status,
                operation=pathname
            )
        except httpx.HTTPError as e:
            raise UpstreamRequestError(
                f"Salesforce request failed: {e}",
                operation=pathname
            )

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError:
            raise UpstreamProtocolError(
                f"Salesforce returned a non-JSON response for {pathname}",
                operation=pathname
            )

    async def query(self, soql: str) -> Dict[str, Any]:
        """Execute a SOQL query."""
        return await self.salesforce_get(f"{self.data_path}/query", params={"q": soql})

    async def describe_object(self, object_type: str) -> Dict[str, Any]:
        """Get metadata about an object."""
        return await self.salesforce_get(f"{self.data_path}/sobjects/{object_type}/describe")


def _error_message(error: httpx.HTTPStatusError) -> str:
    """Pick the most specific message from a Salesforce error payload."""
    try:
        error_data = error.response.json()
    except ValueError:
        error_data = None

    if isinstance(error_data, list) and error_data and isinstance(error_data[0], dict):
        message = error_data[0].get("message")
        if message:
            return str(message)
    if isinstance(error_data, dict) and error_data.get("message"):
        return str(error_data["message"])
    return str(error)


def create_client_from_config(config: KnowledgeConfig) -> SalesforceClient:
    """Create a Salesforce client from configuration."""
    auth = JWTAuth(
        client_id=config.client_id,
        username=config.username,
        private_key_file=config.jwt_key_path,
        login_url=config.login_url,
        timeout=config.timeout
    )

    return SalesforceClient(
        auth=auth,
        api_version=config.api_version,
        timeout=config.timeout
    )
