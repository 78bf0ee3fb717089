"""Function input and the query parameters resolved from it.

The Input mirrors the ``msgraph.fn.crossplane.io`` Input document. Each
parameter can be given literally (``groups``) or as a reference into the
document (``groupsRef``); a reference wins over the literal when both are
set.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from function_msgraph.document.errors import DocumentError
from function_msgraph.document.nodes import Document
from function_msgraph.document.paths import Arity, resolve_reference_field
from function_msgraph.spec.schema_validator import validate_input


class QueryType(Enum):
    """Graph queries the function knows how to run."""

    USER_VALIDATION = "UserValidation"
    GROUP_MEMBERSHIP = "GroupMembership"
    GROUP_OBJECT_IDS = "GroupObjectIDs"
    SERVICE_PRINCIPAL_DETAILS = "ServicePrincipalDetails"


class IdentityType(Enum):
    """How the function authenticates to Entra ID."""

    AZURE_SERVICE_PRINCIPAL = "AzureServicePrincipalCredentials"
    AZURE_WORKLOAD_IDENTITY = "AzureWorkloadIdentityCredentials"


class InputError(Exception):
    """The function input is malformed or cannot be resolved."""


class ReferenceResolutionError(InputError):
    """A ``*Ref`` field could not be resolved against the document."""

    def __init__(self, field_name: str, cause: DocumentError):
        self.field_name = field_name
        self.cause = cause
        super().__init__(f"cannot resolve {field_name}Ref: {cause}")


# Input field name -> arity of its *Ref counterpart, in resolution order.
REFERENCE_FIELDS: dict[str, Arity] = {
    "users": Arity.MULTIPLE,
    "group": Arity.SINGLE,
    "groups": Arity.MULTIPLE,
    "servicePrincipals": Arity.MULTIPLE,
}


@dataclass
class QueryParameters:
    """Fully resolved parameters handed to the Graph collaborator."""

    query_type: str
    users: list[str] = field(default_factory=list)
    group: str = ""
    groups: list[str] = field(default_factory=list)
    service_principals: list[str] = field(default_factory=list)
    identity_type: IdentityType = IdentityType.AZURE_SERVICE_PRINCIPAL


@dataclass
class Input:
    """Parsed function input."""

    query_type: str
    users: list[str | None] = field(default_factory=list)
    users_ref: str = ""
    group: str = ""
    group_ref: str = ""
    groups: list[str | None] = field(default_factory=list)
    groups_ref: str = ""
    service_principals: list[str | None] = field(default_factory=list)
    service_principals_ref: str = ""
    target: str = ""
    skip_query_when_target_has_data: bool = False
    identity_type: IdentityType = IdentityType.AZURE_SERVICE_PRINCIPAL

    @classmethod
    def from_dict(cls, data: dict | None) -> Input:
        """Build an Input from its document form.

        Raises:
            InputError: if the document fails schema validation.
        """
        if not data:
            raise InputError("invalid function input: input is empty")
        issues = validate_input(data)
        if issues:
            raise InputError("invalid function input: " + "; ".join(issues))

        identity = data.get("identity") or {}
        return cls(
            query_type=data["queryType"],
            users=list(data.get("users") or []),
            users_ref=data.get("usersRef", ""),
            group=data.get("group", ""),
            group_ref=data.get("groupRef", ""),
            groups=list(data.get("groups") or []),
            groups_ref=data.get("groupsRef", ""),
            service_principals=list(data.get("servicePrincipals") or []),
            service_principals_ref=data.get("servicePrincipalsRef", ""),
            target=data.get("target", ""),
            skip_query_when_target_has_data=data.get("skipQueryWhenTargetHasData", False),
            identity_type=IdentityType(
                identity.get("type", IdentityType.AZURE_SERVICE_PRINCIPAL.value)
            ),
        )

    def reference(self, field_name: str) -> str:
        return {
            "users": self.users_ref,
            "group": self.group_ref,
            "groups": self.groups_ref,
            "servicePrincipals": self.service_principals_ref,
        }[field_name]

    def resolve(self, document: Document) -> QueryParameters:
        """Resolve every set ``*Ref`` field and return the query parameters.

        Raises:
            ReferenceResolutionError: for the first reference that fails.
        """
        resolved: dict[str, str | list[str]] = {}
        for field_name, arity in REFERENCE_FIELDS.items():
            ref = self.reference(field_name)
            if not ref:
                continue
            try:
                resolved[field_name] = resolve_reference_field(document, ref, arity)
            except DocumentError as e:
                raise ReferenceResolutionError(field_name, e) from e

        return QueryParameters(
            query_type=self.query_type,
            users=resolved.get("users", _present(self.users)),
            group=resolved.get("group", self.group),
            groups=resolved.get("groups", _present(self.groups)),
            service_principals=resolved.get(
                "servicePrincipals", _present(self.service_principals)
            ),
            identity_type=self.identity_type,
        )


def _present(values: list[str | None]) -> list[str]:
    return [v for v in values if v is not None]
