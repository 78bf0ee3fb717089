"""The Graph query collaborator used by the function."""

from __future__ import annotations

import time
from typing import Mapping, Protocol

import httpx

from function_msgraph.config import Settings
from function_msgraph.graph.client import GraphClient
from function_msgraph.graph.credentials import AzureCredentials, token_provider_for
from function_msgraph.graph.errors import GraphQueryError
from function_msgraph.graph.queries import handler_for
from function_msgraph.log import get_logger
from function_msgraph.models.input import QueryParameters

log = get_logger(__name__)


class Query(Protocol):
    """Anything that can answer a query; the function depends only on this."""

    def query(
        self,
        credentials: Mapping[str, str],
        params: QueryParameters,
        timeout: float | None = None,
    ) -> list[dict]: ...


class GraphQuery:
    """Runs queries against Microsoft Graph.

    A token and an HTTP client are created per call and released before
    returning; nothing is shared between invocations.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        transport: httpx.BaseTransport | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.transport = transport
        self.environ = environ

    def query(
        self,
        credentials: Mapping[str, str],
        params: QueryParameters,
        timeout: float | None = None,
    ) -> list[dict]:
        """Run the query described by ``params``.

        Args:
            credentials: The decoded ``credentials`` map from the function secret.
            params: Resolved query parameters.
            timeout: Seconds left in the caller's deadline; defaults to the
                configured timeout.

        Raises:
            GraphQueryError: on invalid parameters, credential failures, or
                any failed request.
        """
        handler = handler_for(params.query_type)
        handler.validate(params)

        budget = timeout if timeout is not None else self.settings.timeout_seconds
        deadline = time.monotonic() + budget
        provider = token_provider_for(
            params.identity_type,
            AzureCredentials.from_mapping(credentials),
            self.settings.authority_host,
            budget,
            transport=self.transport,
            environ=self.environ,
        )
        token = provider.token()

        # The token request and the Graph requests share one deadline.
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise GraphQueryError("graph request aborted: deadline exceeded")

        with GraphClient(token, self.settings.graph_endpoint, remaining, self.transport) as client:
            records = handler.run(client, params)
        log.debug("graph query complete", query_type=params.query_type, records=len(records))
        return records
