"""Pydantic models for the RunFunction request/response envelope.

These mirror the JSON form of Crossplane's ``RunFunctionRequest`` and
``RunFunctionResponse`` messages closely enough to drive the function from
YAML/JSON fixtures and to hand its output back to a gRPC layer.
"""

from __future__ import annotations

import copy
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_TTL_SECONDS = 60


class _Model(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class Severity(str, Enum):
    NORMAL = "SEVERITY_NORMAL"
    WARNING = "SEVERITY_WARNING"
    FATAL = "SEVERITY_FATAL"


class Target(str, Enum):
    COMPOSITE = "TARGET_COMPOSITE"
    COMPOSITE_AND_CLAIM = "TARGET_COMPOSITE_AND_CLAIM"


class ConditionStatus(str, Enum):
    TRUE = "STATUS_CONDITION_TRUE"
    FALSE = "STATUS_CONDITION_FALSE"
    UNKNOWN = "STATUS_CONDITION_UNKNOWN"


# ---------------------------------------------------------------------------
# Request
# ---------------------------------------------------------------------------


class RequestMeta(_Model):
    tag: str = ""


class Resource(_Model):
    """A single resource body plus its connection details."""

    resource: dict[str, Any] = Field(default_factory=dict)
    connection_details: dict[str, str] = Field(default_factory=dict, alias="connectionDetails")
    ready: Optional[str] = None


class State(_Model):
    """Observed or desired state: the composite plus composed resources."""

    composite: Optional[Resource] = None
    resources: dict[str, Resource] = Field(default_factory=dict)


class Resources(_Model):
    """Resources fetched to satisfy a requirement."""

    items: list[Resource] = Field(default_factory=list)


class CredentialData(_Model):
    data: dict[str, str] = Field(default_factory=dict)


class Credentials(_Model):
    credential_data: Optional[CredentialData] = Field(default=None, alias="credentialData")


class RunFunctionRequest(_Model):
    meta: RequestMeta = Field(default_factory=RequestMeta)
    input: dict[str, Any] = Field(default_factory=dict)
    observed: State = Field(default_factory=State)
    desired: State = Field(default_factory=State)
    context: Optional[dict[str, Any]] = None
    credentials: dict[str, Credentials] = Field(default_factory=dict)
    required_resources: Optional[dict[str, Resources]] = Field(
        default=None, alias="requiredResources"
    )

    def credential_data(self, name: str) -> Optional[dict[str, str]]:
        """Return the data map of a named credential, or None."""
        creds = self.credentials.get(name)
        if creds is None or creds.credential_data is None:
            return None
        return creds.credential_data.data


# ---------------------------------------------------------------------------
# Response
# ---------------------------------------------------------------------------


class Condition(_Model):
    type: str
    status: ConditionStatus
    reason: str
    message: Optional[str] = None
    target: Target = Target.COMPOSITE_AND_CLAIM


class Result(_Model):
    severity: Severity
    message: str
    target: Target = Target.COMPOSITE


class ResponseMeta(_Model):
    tag: str = ""
    ttl: str = f"{DEFAULT_TTL_SECONDS}s"


class RunFunctionResponse(_Model):
    meta: ResponseMeta = Field(default_factory=ResponseMeta)
    desired: Optional[State] = None
    results: list[Result] = Field(default_factory=list)
    conditions: list[Condition] = Field(default_factory=list)
    context: Optional[dict[str, Any]] = None

    @classmethod
    def to(cls, request: RunFunctionRequest, ttl_seconds: int = DEFAULT_TTL_SECONDS) -> RunFunctionResponse:
        """Start a response that carries the request's desired state and context forward."""
        return cls(
            meta=ResponseMeta(tag=request.meta.tag, ttl=f"{ttl_seconds}s"),
            desired=request.desired.model_copy(deep=True),
            context=copy.deepcopy(request.context),
        )

    # -- results -------------------------------------------------------------

    def fatal(self, message: str) -> None:
        self.results.append(Result(severity=Severity.FATAL, message=message))

    def warning(self, message: str) -> None:
        self.results.append(Result(severity=Severity.WARNING, message=message))

    def normal(self, message: str) -> None:
        self.results.append(Result(severity=Severity.NORMAL, message=message))

    @property
    def is_fatal(self) -> bool:
        return any(r.severity is Severity.FATAL for r in self.results)

    # -- conditions ----------------------------------------------------------

    def set_condition(
        self,
        type: str,
        status: ConditionStatus,
        reason: str,
        message: str | None = None,
        target: Target = Target.COMPOSITE_AND_CLAIM,
    ) -> None:
        self.conditions.append(
            Condition(type=type, status=status, reason=reason, message=message, target=target)
        )

    def dump(self) -> dict:
        """Serialize to the camelCase JSON form, omitting unset fields."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")
