"""Knowledge MCP - Salesforce Knowledge article search over HTTP and the Model Context Protocol."""

__version__ = "0.1.0"

from .articles import ArticleService
from .auth import JWTAuth
from .client import SalesforceClient, create_client_from_config
from .config import KnowledgeConfig
from .exceptions import (
    ConfigurationError,
    ErrorKind,
    KnowledgeError,
    NotFoundError,
    UpstreamProtocolError,
    UpstreamRequestError,
    ValidationError,
)
from .fields import FieldResolver
from .soql import QueryBuilder, sanitize_term

__all__ = [
    "ArticleService",
    "JWTAuth",
    "SalesforceClient",
    "create_client_from_config",
    "KnowledgeConfig",
    "FieldResolver",
    "QueryBuilder",
    "sanitize_term",
    "KnowledgeError",
    "ErrorKind",
    "ConfigurationError",
    "ValidationError",
    "UpstreamRequestError",
    "UpstreamProtocolError",
    "NotFoundError",
]
