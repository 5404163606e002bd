"""Shared fixtures for the Knowledge MCP test suite."""

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from knowledge_mcp.config import KnowledgeConfig


@pytest.fixture(scope="session")
def private_key():
    """Generate a test private key."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def private_key_pem(private_key):
    """Get PEM encoded private key."""
    return private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption()
    )


@pytest.fixture
def key_file(tmp_path, private_key_pem):
    """Write the private key where the config expects it."""
    path = tmp_path / "sf_jwt.key"
    path.write_bytes(private_key_pem)
    return path


@pytest.fixture
def config(key_file):
    """Create test configuration."""
    return KnowledgeConfig(
        _env_file=None,
        login_url="https://test.salesforce.com/",
        client_id="test_client_id",
        username="test@example.com",
        jwt_key_path=str(key_file),
        knowledge_language="en_US",
        article_object="Knowledge__kav",
        article_additional_fields="",
        article_select_all_fields=False,
        default_search_limit=20,
        max_search_limit=50
    )
