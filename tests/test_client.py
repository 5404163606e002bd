"""Unit tests for the Salesforce gateway."""

import httpx
import pytest
from unittest.mock import AsyncMock, Mock

from knowledge_mcp.auth import JWTAuth
from knowledge_mcp.client import SalesforceClient, create_client_from_config
from knowledge_mcp.exceptions import UpstreamRequestError


@pytest.fixture
def mock_auth():
    """Create a mock authentication instance."""
    auth = Mock(spec=JWTAuth)
    auth.instance_url = "https://example.my.salesforce.com"
    auth.access_token = "test_token"
    auth.get_headers = AsyncMock(return_value={
        "Authorization": "Bearer test_token",
        "Accept": "application/json"
    })
    auth.authenticate = AsyncMock()
    return auth


@pytest.fixture
def client(mock_auth):
    """Create a test client."""
    return SalesforceClient(auth=mock_auth, api_version="60.0")


def _install(client, handler):
    client._client = httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_query_success(client):
    """Test successful SOQL query."""
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"totalSize": 1, "done": True, "records": [{"Id": "ka0xx0000000001AAA"}]})

    _install(client, handler)

    result = await client.query("SELECT Id FROM Knowledge__kav")

    assert result["records"] == [{"Id": "ka0xx0000000001AAA"}]
    request = seen[0]
    assert request.method == "GET"
    assert request.url.host == "example.my.salesforce.com"
    assert request.url.path == "/services/data/v60.0/query"
    assert request.url.params["q"] == "SELECT Id FROM Knowledge__kav"
    assert request.headers["Authorization"] == "Bearer test_token"
    assert request.headers["Accept"] == "application/json"


@pytest.mark.asyncio
async def test_describe_object_path(client):
    seen = []

    def handler(request):
        seen.append(request.url.path)
        return httpx.Response(200, json={"fields": [{"name": "Id"}]})

    _install(client, handler)

    result = await client.describe_object("Knowledge__kav")

    assert result == {"fields": [{"name": "Id"}]}
    assert seen == ["/services/data/v60.0/sobjects/Knowledge__kav/describe"]


@pytest.mark.asyncio
async def test_error_message_from_array_payload(client):
    """Test handling of Salesforce array-wrapped errors."""
    def handler(request):
        return httpx.Response(400, json=[{
            "message": "unexpected token: FROM",
            "errorCode": "MALFORMED_QUERY"
        }])

    _install(client, handler)

    with pytest.raises(UpstreamRequestError) as exc_info:
        await client.query("SELECT FROM")

    assert exc_info.value.upstream_status == 400
    assert exc_info.value.http_status == 400
    assert "unexpected token: FROM" in str(exc_info.value)
    assert exc_info.value.operation == "/services/data/v60.0/query"


@pytest.mark.asyncio
async def test_error_message_from_object_payload(client):
    def handler(request):
        return httpx.Response(401, json={"message": "Session expired or invalid"})

    _install(client, handler)

    with pytest.raises(UpstreamRequestError) as exc_info:
        await client.query("SELECT Id FROM Knowledge__kav")

    assert exc_info.value.upstream_status == 401
    assert "Session expired or invalid" in str(exc_info.value)


@pytest.mark.asyncio
async def test_error_message_falls_back_to_transport_message(client):
    def handler(request):
        return httpx.Response(503, text="<html>down for maintenance</html>")

    _install(client, handler)

    with pytest.raises(UpstreamRequestError) as exc_info:
        await client.query("SELECT Id FROM Knowledge__kav")

    assert exc_info.value.upstream_status == 503
    assert "503" in str(exc_info.value)


@pytest.mark.asyncio
async def test_transport_error(client):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    _install(client, handler)

    with pytest.raises(UpstreamRequestError) as exc_info:
        await client.query("SELECT Id FROM Knowledge__kav")

    assert exc_info.value.upstream_status is None
    assert exc_info.value.http_status == 500
    assert "connection refused" in str(exc_info.value)


@pytest.mark.asyncio
async def test_failures_are_not_retried(client, mock_auth):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(401, json=[{"message": "Session expired", "errorCode": "INVALID_SESSION_ID"}])

    _install(client, handler)

    with pytest.raises(UpstreamRequestError):
        await client.query("SELECT Id FROM Knowledge__kav")

    assert len(calls) == 1
    mock_auth.authenticate.assert_not_called()


@pytest.mark.asyncio
async def test_context_manager(mock_auth):
    """Test client as async context manager."""
    client = SalesforceClient(auth=mock_auth)

    async with client as c:
        assert c._client is not None
        assert isinstance(c._client, httpx.AsyncClient)

    assert client._client is None


def test_create_client_from_config(config):
    client = create_client_from_config(config)

    assert isinstance(client.auth, JWTAuth)
    assert client.auth.client_id == "test_client_id"
    assert client.auth.username == "test@example.com"
    assert client.auth.token_url == "https://test.salesforce.com/services/oauth2/token"
    assert client.api_version == config.api_version
    assert client.data_path == f"/services/data/v{config.api_version}"
