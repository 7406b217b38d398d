"""
Test Fixtures Module
====================
Reference queries and their expected interpretation.
"""

from .standard_queries import (
    STANDARD_TEST_QUERIES,
    get_queries_by_route,
    get_queries_by_category,
    get_query_by_id,
    get_query_summary
)

__all__ = [
    "STANDARD_TEST_QUERIES",
    "get_queries_by_route",
    "get_queries_by_category",
    "get_query_by_id",
    "get_query_summary"
]
