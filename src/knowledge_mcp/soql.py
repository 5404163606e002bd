"""SOQL construction for Knowledge article queries.

This module is the only place caller input is written into SOQL text.
Search terms are passed through ``sanitize_term``, which removes the
characters that could close or escape a string literal. It does not escape
the LIKE wildcards ``%`` and ``_``, so a term containing them widens the
match; record visibility is still enforced by the running user's Salesforce
permissions.
"""

import math
import re
from typing import Any, Optional, Sequence

from .exceptions import ValidationError

ARTICLE_ID_PATTERN = re.compile(r"^[A-Za-z0-9]{15,18}$")

_UNSAFE_CHARS = re.compile(r"['\\]")


def sanitize_term(term: str) -> str:
    """Strip single quotes and backslashes, then surrounding whitespace."""
    return _UNSAFE_CHARS.sub("", term).strip()


class QueryBuilder:
    """Builds the search and get-by-id queries for one article object."""

    def __init__(
        self,
        article_object: str,
        knowledge_language: str,
        default_search_limit: int = 20,
        max_search_limit: int = 50
    ):
        self.article_object = article_object
        self.knowledge_language = knowledge_language
        self.default_search_limit = default_search_limit
        self.max_search_limit = max_search_limit

    def require_term(self, term: Optional[str]) -> str:
        if term is None or not str(term).strip():
            raise ValidationError("Search term is required", parameter="q")
        return str(term)

    def require_article_id(self, article_id: Optional[str]) -> str:
        if not isinstance(article_id, str) or not ARTICLE_ID_PATTERN.fullmatch(article_id):
            raise ValidationError(
                "A valid Salesforce article Id (15-18 alphanumeric chars) is required",
                parameter="id"
            )
        return article_id

    def clamp_limit(self, limit: Any) -> int:
        """Clamp a requested limit into [1, max_search_limit].

        Missing, non-numeric, NaN, zero and negative values fall back to the
        default limit. Positive fractional values are truncated, never below 1.
        """
        if isinstance(limit, bool):
            value = 0.0
        else:
            try:
                value = float(limit)
            except (TypeError, ValueError):
                value = 0.0
        if math.isnan(value) or value <= 0:
            value = self.default_search_limit
        value = min(value, self.max_search_limit)
        return max(int(value), 1)

    def _base_where(self) -> str:
        return (
            f"PublishStatus = 'Online' "
            f"AND Language = '{self.knowledge_language}'"
        )

    def build_search_query(self, term: Optional[str], limit: Any, fields: Sequence[str]) -> str:
        safe_term = sanitize_term(self.require_term(term))
        limit_value = self.clamp_limit(limit)

        return (
            f"SELECT {', '.join(fields)} FROM {self.article_object} "
            f"WHERE {self._base_where()} AND Title LIKE '%{safe_term}%' "
            f"ORDER BY LastPublishedDate DESC LIMIT {limit_value}"
        )

    def build_get_query(self, article_id: Optional[str], fields: Sequence[str]) -> str:
        article_id = self.require_article_id(article_id)

        return (
            f"SELECT {', '.join(fields)} FROM {self.article_object} "
            f"WHERE {self._base_where()} AND Id = '{article_id}' LIMIT 1"
        )
