"""The composition function: resolve, query, write back, and report.

One call to :meth:`Function.run_function` handles one request. In pipeline
mode the function reads the observed composite and writes results into the
desired composite or the pipeline context. In operation mode it works on the
single watched composite resource and reports drift through annotations.
"""

from __future__ import annotations

import copy
import json
from datetime import datetime, timezone

from function_msgraph.config import Settings
from function_msgraph.document.errors import DocumentError
from function_msgraph.document.nodes import Document, Root
from function_msgraph.document.paths import lookup
from function_msgraph.document.writer import parse_target, set_value
from function_msgraph.graph import GraphQuery, Query
from function_msgraph.graph.errors import CredentialError, GraphQueryError
from function_msgraph.log import get_logger
from function_msgraph.models.envelope import (
    ConditionStatus,
    Resource,
    RunFunctionRequest,
    RunFunctionResponse,
    State,
)
from function_msgraph.models.input import Input, InputError
from function_msgraph.sync.drift import DriftDetector
from function_msgraph.sync.operation import (
    DESIRED_RESOURCE_NAME,
    OperationError,
    OperationGuard,
    merge_annotations,
    to_apply_patch,
)
from function_msgraph.sync.policy import InvocationMode, SkipPolicy

FATAL_ERRORS = (InputError, GraphQueryError, OperationError, DocumentError)


class Timer:
    """Source of the last-execution timestamp."""

    def now(self) -> str:
        return datetime.now(timezone.utc).isoformat(timespec="seconds")


class Function:
    """Runs Graph queries on behalf of a Composition or Operation."""

    def __init__(
        self,
        query: Query | None = None,
        timer: Timer | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.query = query or GraphQuery(self.settings)
        self.timer = timer or Timer()
        self.log = get_logger(__name__)

    def run_function(
        self,
        request: RunFunctionRequest | dict,
        timeout: float | None = None,
    ) -> RunFunctionResponse:
        """Handle one RunFunction request.

        Every failure becomes a single fatal result. The desired state is
        only modified once the query has succeeded, so a failed run returns
        it unchanged (or, for a malformed operation, not at all).

        Args:
            request: The request, as a model or its JSON dict form.
            timeout: Seconds remaining before the caller's deadline.
        """
        if isinstance(request, dict):
            request = RunFunctionRequest.model_validate(request)

        rsp = RunFunctionResponse.to(request, self.settings.response_ttl_seconds)
        operation = request.observed.composite is None
        if operation:
            rsp.desired = None
        elif rsp.desired.composite is None or not rsp.desired.composite.resource:
            rsp.desired.composite = Resource(
                resource=copy.deepcopy(request.observed.composite.resource)
            )

        log = self.log.bind(tag=request.meta.tag, operation=operation)
        try:
            self._run(request, rsp, operation, timeout, log)
        except FATAL_ERRORS as e:
            log.info("function run failed", error=str(e))
            rsp.fatal(str(e))
        return rsp

    def _run(self, request, rsp, operation, timeout, log) -> None:
        fn_input = Input.from_dict(request.input)
        credentials = self._credentials(request)

        if operation:
            mode = InvocationMode.OPERATION
            watched = OperationGuard(_required_resources(request)).watched_resource()
            document = Document(
                resource=copy.deepcopy(watched),
                context=copy.deepcopy(request.context or {}),
            )
        else:
            mode = InvocationMode.PIPELINE
            document = Document(
                resource=copy.deepcopy(request.observed.composite.resource),
                context=copy.deepcopy(request.context or {}),
            )

        target = parse_target(fn_input.target)
        params = fn_input.resolve(document)
        log = log.bind(query_type=fn_input.query_type, target=fn_input.target, mode=mode.value)

        decision = SkipPolicy(fn_input.skip_query_when_target_has_data, mode).evaluate(
            lookup(document, target)
        )
        if decision.skip:
            log.info("skipping query", reason=decision.reason)
            rsp.set_condition("FunctionSkip", ConditionStatus.TRUE, "SkippedQuery", message=decision.reason)
            rsp.set_condition("FunctionSuccess", ConditionStatus.TRUE, "Success")
            return

        records = self.query.query(credentials, params, timeout)
        log.info("query complete", records=len(records))

        if operation:
            self._finish_operation(rsp, document, target, records, log)
        else:
            self._write_back(rsp, document, target, records)

        rsp.normal(f'QueryType: "{fn_input.query_type}"')
        rsp.set_condition("FunctionSuccess", ConditionStatus.TRUE, "Success")

    def _credentials(self, request: RunFunctionRequest) -> dict[str, str]:
        name = self.settings.credentials_name
        data = request.credential_data(name)
        if not data or not data.get("credentials"):
            raise CredentialError(f"failed to get {name} credentials")
        try:
            creds = json.loads(data["credentials"])
        except ValueError as e:
            raise CredentialError(f"cannot parse {name} credentials: {e}") from e
        if not isinstance(creds, dict):
            raise CredentialError(f"cannot parse {name} credentials: expected a JSON object")
        return {k: str(v) for k, v in creds.items()}

    def _write_back(self, rsp, document: Document, target: list[str], records: list[dict]) -> None:
        if target[0] == Root.CONTEXT.value:
            updated = set_value(document, target, records)
            rsp.context = updated.context
            return

        desired = Document(resource=rsp.desired.composite.resource, context=document.context)
        updated = set_value(desired, target, records)
        rsp.desired.composite.resource = updated.resource

    def _finish_operation(self, rsp, document: Document, target: list[str], records: list[dict], log) -> None:
        updated = set_value(document, target, records)
        report = DriftDetector(document).check(target, lookup(updated, target))
        log.info("drift check", drift=report.has_drift, summary=report.summary())

        if target[0] == Root.CONTEXT.value:
            rsp.context = updated.context

        annotated = merge_annotations(updated.resource, report.has_drift, self.timer.now())
        rsp.desired = State(
            resources={DESIRED_RESOURCE_NAME: Resource(resource=to_apply_patch(annotated))}
        )


def _required_resources(request: RunFunctionRequest) -> dict[str, list[dict]] | None:
    if request.required_resources is None:
        return None
    return {
        name: [item.resource for item in resources.items]
        for name, resources in request.required_resources.items()
    }
