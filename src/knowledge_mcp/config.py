"""Configuration management for the Knowledge MCP server and HTTP API."""

import os
from pathlib import Path
from typing import List, Optional

from pydantic import AliasChoices, Field
from pydantic import ValidationError as PydanticValidationError
from pydantic_settings import BaseSettings

from .exceptions import ConfigurationError


def _default_key_path() -> str:
    return str(Path.cwd() / "sf_jwt.key")


class KnowledgeConfig(BaseSettings):
    """Main configuration, read once from the environment at startup."""

    # JWT bearer flow
    login_url: str = Field(default="https://login.salesforce.com")
    api_version: str = Field(default="60.0")
    client_id: Optional[str] = Field(default=None, description="Connected App consumer key")
    username: Optional[str] = Field(default=None, description="JWT subject")
    jwt_key_path: str = Field(default_factory=_default_key_path)

    # Knowledge article settings
    knowledge_language: str = Field(default="en_US")
    article_object: str = Field(default="Knowledge__kav")
    article_additional_fields: str = Field(default="", description="Comma separated field API names")
    article_select_all_fields: bool = Field(default=False)
    default_search_limit: int = Field(default=20)
    max_search_limit: int = Field(default=50)

    # HTTP client settings
    timeout: int = Field(default=30)

    # Server settings
    host: str = Field(default="0.0.0.0", validation_alias=AliasChoices("HOST", "SALESFORCE_HOST"))
    port: int = Field(default=3000, validation_alias=AliasChoices("PORT", "SALESFORCE_PORT"))
    log_level: str = Field(default="info", validation_alias=AliasChoices("LOG_LEVEL", "SALESFORCE_LOG_LEVEL"))

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "env_prefix": "SALESFORCE_",
        "populate_by_name": True,
        "extra": "ignore"
    }

    @property
    def additional_fields(self) -> List[str]:
        """Parse the additional field list."""
        return [f.strip() for f in self.article_additional_fields.split(",") if f.strip()]

    def validate_config(self) -> bool:
        """Validate the configuration before any Salesforce call is attempted."""
        missing = []
        if not self.client_id:
            missing.append("SALESFORCE_CLIENT_ID")
        if not self.username:
            missing.append("SALESFORCE_USERNAME")

        if missing:
            raise ConfigurationError(
                f"Missing required environment variables: {', '.join(missing)}",
                setting=missing[0]
            )

        if not self.jwt_key_path:
            raise ConfigurationError(
                "Missing Salesforce JWT key path. Set SALESFORCE_JWT_KEY_PATH or place sf_jwt.key in project root.",
                setting="SALESFORCE_JWT_KEY_PATH"
            )

        if not os.path.isfile(self.jwt_key_path):
            raise ConfigurationError(
                f"Salesforce JWT key not found at {self.jwt_key_path}",
                setting="SALESFORCE_JWT_KEY_PATH"
            )

        return True


def load_config() -> KnowledgeConfig:
    """Read and validate the configuration; any problem is a ConfigurationError."""
    try:
        config = KnowledgeConfig()
    except PydanticValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}")
    config.validate_config()
    return config
