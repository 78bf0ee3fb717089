"""Microsoft Graph HTTP client.

A thin wrapper around ``httpx.Client`` that adds bearer auth, OData query
helpers, ``@odata.nextLink`` paging, and a total time budget shared by every
request made through one client.
"""

from __future__ import annotations

import time

import httpx

from function_msgraph.graph.errors import GraphQueryError

DEFAULT_ENDPOINT = "https://graph.microsoft.com/v1.0"


def odata_string(value: str) -> str:
    """Quote a value for use in an OData ``$filter`` expression."""
    return "'" + value.replace("'", "''") + "'"


class GraphClient:
    """Issues read-only Graph requests within a deadline.

    Parameters
    ----------
    token : str
        Bearer access token for Graph.
    endpoint : str
        Graph base URL including the API version.
    timeout : float
        Total seconds allowed for all requests made by this client.
    """

    def __init__(
        self,
        token: str,
        endpoint: str = DEFAULT_ENDPOINT,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._deadline = time.monotonic() + timeout
        self._client = httpx.Client(
            base_url=endpoint.rstrip("/") + "/",
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/json",
                "ConsistencyLevel": "eventual",
            },
            timeout=timeout,
            transport=transport,
        )

    def __enter__(self) -> GraphClient:
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def get_collection(
        self,
        path: str,
        filter: str | None = None,
        select: tuple[str, ...] | None = None,
    ) -> list[dict]:
        """GET a collection and follow ``@odata.nextLink`` until exhausted."""
        params: dict[str, str] | None = {}
        if filter:
            params["$filter"] = filter
        if select:
            params["$select"] = ",".join(select)

        items: list[dict] = []
        url: str | None = path.lstrip("/")
        while url:
            data = self._get(url, params)
            items.extend(data.get("value", []))
            url = data.get("@odata.nextLink")
            params = None  # nextLink already carries the query
        return items

    def _get(self, url: str, params: dict[str, str] | None) -> dict:
        remaining = self._deadline - time.monotonic()
        if remaining <= 0:
            raise GraphQueryError("graph request aborted: deadline exceeded")

        try:
            resp = self._client.get(url, params=params, timeout=remaining)
            resp.raise_for_status()
        except httpx.TimeoutException as e:
            raise GraphQueryError(f"graph request timed out: {url}") from e
        except httpx.HTTPStatusError as e:
            raise GraphQueryError(
                f"graph request failed: {e.response.status_code} {_error_message(e.response)}"
            ) from e
        except httpx.RequestError as e:
            raise GraphQueryError(f"graph request failed: {e}") from e
        return resp.json()


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.reason_phrase
    error = body.get("error") if isinstance(body, dict) else None
    if not isinstance(error, dict):
        return response.reason_phrase
    return error.get("message") or error.get("code") or response.reason_phrase
