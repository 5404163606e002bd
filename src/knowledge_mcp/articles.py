"""Article service combining field resolution, SOQL building and the gateway."""

from typing import Any, Dict, List, Optional

from .client import SalesforceClient, create_client_from_config
from .config import KnowledgeConfig
from .exceptions import NotFoundError
from .fields import FieldResolver
from .soql import QueryBuilder


class ArticleService:
    """Search and fetch published Knowledge articles.

    One instance is shared by every request a front end serves. It owns the
    process-lifetime caches: the access token (inside ``client.auth``) and
    the described field list (inside ``fields``).
    """

    def __init__(self, client: SalesforceClient, config: KnowledgeConfig):
        self.client = client
        self.config = config
        self.fields = FieldResolver(
            client,
            article_object=config.article_object,
            select_all=config.article_select_all_fields,
            additional_fields=config.additional_fields
        )
        self.queries = QueryBuilder(
            article_object=config.article_object,
            knowledge_language=config.knowledge_language,
            default_search_limit=config.default_search_limit,
            max_search_limit=config.max_search_limit
        )

    @classmethod
    def from_config(cls, config: KnowledgeConfig) -> "ArticleService":
        return cls(create_client_from_config(config), config)

    async def aclose(self) -> None:
        await self.client.aclose()

    async def search_articles(self, term: Optional[str], limit: Any = None) -> List[Dict[str, Any]]:
        """Return published articles whose title contains ``term``, newest first."""
        self.queries.require_term(term)
        fields = await self.fields.get_article_fields()
        soql = self.queries.build_search_query(term, limit, fields)

        data = await self.client.query(soql)
        records = data.get("records") if isinstance(data, dict) else None
        return records if isinstance(records, list) else []

    async def get_article_by_id(self, article_id: Optional[str]) -> Dict[str, Any]:
        """Return one published article, or raise NotFoundError."""
        self.queries.require_article_id(article_id)
        fields = await self.fields.get_article_fields()
        soql = self.queries.build_get_query(article_id, fields)

        data = await self.client.query(soql)
        records = data.get("records") if isinstance(data, dict) else None
        if not isinstance(records, list) or not records:
            raise NotFoundError(
                "Article not found",
                object_type=self.config.article_object,
                object_id=article_id
            )
        return records[0]
