"""Microsoft Graph integration.

Provides credential handling for service principals and workload identity,
an httpx-based Graph client, and one handler per supported query type.
"""

from function_msgraph.graph.errors import (
    CredentialError,
    GraphQueryError,
    QueryParameterError,
    UnsupportedQueryError,
)
from function_msgraph.graph.query import GraphQuery, Query

__all__ = [
    "CredentialError",
    "GraphQuery",
    "GraphQueryError",
    "Query",
    "QueryParameterError",
    "UnsupportedQueryError",
]
