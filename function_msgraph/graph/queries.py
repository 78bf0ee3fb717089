"""Graph query handlers.

Each supported query type has one handler that knows how to validate its
parameters, issue its requests, and shape Graph objects into the records
written to the target. Handlers are looked up once per invocation from the
parsed ``queryType``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from function_msgraph.graph.client import GraphClient, odata_string
from function_msgraph.graph.errors import GraphQueryError, QueryParameterError, UnsupportedQueryError
from function_msgraph.log import get_logger
from function_msgraph.models.input import QueryParameters, QueryType

log = get_logger(__name__)

# @odata.type -> the "type" reported on group members
MEMBER_TYPES = {
    "#microsoft.graph.user": "user",
    "#microsoft.graph.servicePrincipal": "servicePrincipal",
    "#microsoft.graph.group": "group",
    "#microsoft.graph.device": "device",
}


class QueryHandler(ABC):
    """Base handler: validate parameters, run requests, shape results."""

    query_type: QueryType
    fields: tuple[str, ...] = ()

    @abstractmethod
    def validate(self, params: QueryParameters) -> None:
        """Raise QueryParameterError if the parameters cannot drive a query."""

    @abstractmethod
    def run(self, client: GraphClient, params: QueryParameters) -> list[dict]:
        """Issue the Graph requests and return shaped records."""

    def shape(self, item: dict) -> dict:
        return {f: item[f] for f in self.fields if item.get(f) is not None}

    def _lookup_each(self, client: GraphClient, collection: str, key: str, names: list[str]) -> list[dict]:
        """Look up objects by ``key eq name`` one name at a time, skipping misses."""
        results = []
        for name in names:
            found = client.get_collection(
                collection, filter=f"{key} eq {odata_string(name)}", select=self.fields
            )
            if not found:
                log.warning("object not found", collection=collection, name=name)
                continue
            results.extend(self.shape(item) for item in found)
        return results


class UserValidationHandler(QueryHandler):
    query_type = QueryType.USER_VALIDATION
    fields = ("id", "displayName", "userPrincipalName", "mail")

    def validate(self, params: QueryParameters) -> None:
        if not params.users:
            raise QueryParameterError("no users provided for validation")

    def run(self, client: GraphClient, params: QueryParameters) -> list[dict]:
        return self._lookup_each(client, "/users", "userPrincipalName", params.users)


class GroupMembershipHandler(QueryHandler):
    query_type = QueryType.GROUP_MEMBERSHIP
    fields = ("id", "displayName", "mail", "userPrincipalName", "appId")

    def validate(self, params: QueryParameters) -> None:
        if not params.group:
            raise QueryParameterError("no group name provided")

    def run(self, client: GraphClient, params: QueryParameters) -> list[dict]:
        groups = client.get_collection(
            "/groups",
            filter=f"displayName eq {odata_string(params.group)}",
            select=("id", "displayName"),
        )
        if not groups:
            raise GraphQueryError(f"group not found: {params.group}")
        if len(groups) > 1:
            log.warning("multiple groups share a display name, using the first",
                        group=params.group, matches=len(groups))

        members = client.get_collection(f"/groups/{groups[0]['id']}/members", select=self.fields)
        return [self.shape(member) for member in members]

    def shape(self, item: dict) -> dict:
        record = super().shape(item)
        odata_type = item.get("@odata.type", "")
        record["type"] = MEMBER_TYPES.get(odata_type, odata_type.rsplit(".", 1)[-1] or "unknown")
        return record


class GroupObjectIDsHandler(QueryHandler):
    query_type = QueryType.GROUP_OBJECT_IDS
    fields = ("id", "displayName", "description")

    def validate(self, params: QueryParameters) -> None:
        if not params.groups:
            raise QueryParameterError("no group names provided")

    def run(self, client: GraphClient, params: QueryParameters) -> list[dict]:
        return self._lookup_each(client, "/groups", "displayName", params.groups)


class ServicePrincipalDetailsHandler(QueryHandler):
    query_type = QueryType.SERVICE_PRINCIPAL_DETAILS
    fields = ("id", "appId", "displayName", "description")

    def validate(self, params: QueryParameters) -> None:
        if not params.service_principals:
            raise QueryParameterError("no service principal names provided")

    def run(self, client: GraphClient, params: QueryParameters) -> list[dict]:
        return self._lookup_each(client, "/servicePrincipals", "displayName", params.service_principals)


QUERY_HANDLERS: dict[QueryType, QueryHandler] = {
    handler.query_type: handler
    for handler in (
        UserValidationHandler(),
        GroupMembershipHandler(),
        GroupObjectIDsHandler(),
        ServicePrincipalDetailsHandler(),
    )
}


def handler_for(query_type: str) -> QueryHandler:
    """Return the handler for a ``queryType`` value."""
    try:
        return QUERY_HANDLERS[QueryType(query_type)]
    except ValueError:
        raise UnsupportedQueryError(query_type) from None
