"""Field selection for the Knowledge article object."""

from typing import Iterable, List, Optional

from .client import SalesforceClient
from .exceptions import ConfigurationError

BASE_ARTICLE_FIELDS = (
    "Id",
    "Title",
    "Summary",
    "UrlName",
    "Language",
    "PublishStatus",
    "LastPublishedDate",
    "ArticleNumber",
)


def _dedupe(fields: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(fields))


class FieldResolver:
    """Resolves the fields selected for article queries.

    With ``select_all`` enabled the object's describe result is fetched once
    and reused for the lifetime of the resolver.
    """

    def __init__(
        self,
        client: SalesforceClient,
        article_object: str,
        select_all: bool = False,
        additional_fields: Optional[List[str]] = None
    ):
        self.client = client
        self.article_object = article_object
        self.select_all = select_all
        self.additional_fields = list(additional_fields or [])
        self._described_fields: Optional[List[str]] = None

    async def _describe_all_fields(self) -> List[str]:
        if self._described_fields is not None:
            return self._described_fields

        data = await self.client.describe_object(self.article_object)
        raw_fields = data.get("fields") if isinstance(data, dict) else None
        if not isinstance(raw_fields, list):
            raw_fields = []
        fields = [f["name"] for f in raw_fields if isinstance(f, dict) and f.get("name")]

        if not fields:
            raise ConfigurationError(
                f"No fields found from describe for {self.article_object}. Check object name/permissions.",
                setting="SALESFORCE_ARTICLE_OBJECT"
            )

        self._described_fields = _dedupe(fields)
        return self._described_fields

    async def get_article_fields(self) -> List[str]:
        if self._described_fields is not None:
            return list(self._described_fields)

        if self.select_all:
            return list(await self._describe_all_fields())

        return _dedupe([*BASE_ARTICLE_FIELDS, *self.additional_fields])
