"""Errors raised by the Graph collaborator. Messages reach users verbatim."""

from __future__ import annotations


class GraphQueryError(Exception):
    """A Graph query could not be completed."""


class QueryParameterError(GraphQueryError):
    """The resolved parameters are not enough to run the query."""


class UnsupportedQueryError(GraphQueryError):
    def __init__(self, query_type: str):
        self.query_type = query_type
        super().__init__(f"unsupported query type: {query_type}")


class CredentialError(GraphQueryError):
    """Credentials are missing, incomplete, or were rejected."""
