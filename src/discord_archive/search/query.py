"""
Search query composition and result interpretation.
Turns a SearchFilter into a ranked, paginated Elasticsearch request and turns
the raw index response back into a SearchResultPage.
"""
import logging
from typing import Any, Dict, List, Mapping

from pydantic import ValidationError

from ..core.exceptions import SearchResponseError
from ..models.archive_models import Message, SearchFilter, SearchResultPage

logger = logging.getLogger(__name__)

PAGE_SIZE = 50

# Term filters applied verbatim, one per field
TERM_FIELDS = ("author_id", "channel_id", "guild_id")


def unwrap_response(raw: Any) -> Mapping[str, Any]:
    """Return the response body from a raw index response.

    Accepts a plain mapping, an API response object exposing ``.body``, or a
    mapping that nests the body under a ``"body"`` key.
    """
    body = getattr(raw, "body", raw)
    if isinstance(body, Mapping) and isinstance(body.get("body"), Mapping):
        body = body["body"]
    if not isinstance(body, Mapping):
        raise SearchResponseError(f"Unexpected search response type: {type(raw).__name__}")
    return body


def parse_total(raw_total: Any) -> int:
    """Normalize the total-hit count of a search response.

    The count is reported either as a bare integer or as an object of the form
    ``{"value": <int>, "relation": ...}``. Both are accepted; anything else is
    a data-contract violation and raises SearchResponseError rather than
    defaulting to zero.
    """
    if isinstance(raw_total, Mapping):
        raw_total = raw_total.get("value")
    if isinstance(raw_total, bool) or not isinstance(raw_total, int):
        raise SearchResponseError(f"Invalid total hit count: {raw_total!r}")
    return raw_total


class QueryComposer:
    """Builds ranked search requests and interprets their responses"""

    def __init__(self, page_size: int = PAGE_SIZE):
        self.page_size = page_size

    def build_content_clause(self, content: str) -> Dict[str, Any]:
        """Ranked OR-group: exact phrase > phrase prefix > fuzzy match"""
        return {
            "bool": {
                "should": [
                    {"match_phrase": {"content": {"query": content, "boost": 3}}},
                    {"match_phrase_prefix": {"content": {"query": content, "boost": 2}}},
                    {"match": {"content": {"query": content, "fuzziness": "AUTO", "boost": 1}}},
                ],
                "minimum_should_match": 1,
            }
        }

    def build_query(self, filters: SearchFilter) -> Dict[str, Any]:
        """Compose the bool query for a filter set; every clause goes under must"""
        must: List[Dict[str, Any]] = []

        if filters.content:
            must.append(self.build_content_clause(filters.content))

        for field in TERM_FIELDS:
            value = getattr(filters, field)
            if value:
                must.append({"term": {field: value}})

        # Never return zero results just because no filters were given
        if not must:
            must.append({"match_all": {}})

        return {"bool": {"must": must}}

    def offset(self, page: int) -> int:
        """Offset of the first hit on a page. Pages start at 1; page < 1 is not clamped."""
        return (page - 1) * self.page_size

    def build_request(self, filters: SearchFilter) -> Dict[str, Any]:
        """Full search request: query, timestamp sort and pagination window"""
        return {
            "query": self.build_query(filters),
            "sort": [{"timestamp": {"order": filters.sort}}],
            "from": self.offset(filters.page),
            "size": self.page_size,
        }

    def has_more(self, page: int, total: int) -> bool:
        return page * self.page_size < total

    def interpret_response(self, raw: Any, page: int) -> SearchResultPage:
        """Extract messages, total and has_more from a raw search response"""
        body = unwrap_response(raw)

        hits = body.get("hits")
        if not isinstance(hits, Mapping) or not isinstance(hits.get("hits"), list):
            logger.error(f"Unexpected search response format: {body!r}")
            raise SearchResponseError("Invalid search response format")

        total = parse_total(hits.get("total"))

        try:
            messages = [Message.model_validate(hit["_source"]) for hit in hits["hits"]]
        except (KeyError, TypeError, ValidationError) as e:
            raise SearchResponseError(f"Malformed search hit: {e}") from e

        return SearchResultPage(
            messages=messages,
            total=total,
            page=page,
            has_more=self.has_more(page, total),
        )
