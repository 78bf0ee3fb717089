"""Entra ID credentials and access-token providers.

Two identities are supported:

- ``AzureServicePrincipalCredentials`` (default): a client ID and secret,
  exchanged with the client-credentials grant.
- ``AzureWorkloadIdentityCredentials``: a federated token projected into the
  pod, sent as a client assertion. Client and tenant IDs fall back to the
  ``AZURE_CLIENT_ID``/``AZURE_TENANT_ID`` variables the workload identity
  webhook injects.
"""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Mapping

import httpx

from function_msgraph.graph.errors import CredentialError
from function_msgraph.models.input import IdentityType

GRAPH_SCOPE = "https://graph.microsoft.com/.default"
CLIENT_ASSERTION_TYPE = "urn:ietf:params:oauth:client-assertion-type:jwt-bearer"


@dataclass
class AzureCredentials:
    """The ``credentials`` JSON blob stored in the function's secret."""

    client_id: str = ""
    client_secret: str = ""
    tenant_id: str = ""
    subscription_id: str = ""
    federated_token_file: str = ""

    @classmethod
    def from_mapping(cls, data: Mapping[str, str]) -> AzureCredentials:
        return cls(
            client_id=data.get("clientId", ""),
            client_secret=data.get("clientSecret", ""),
            tenant_id=data.get("tenantId", ""),
            subscription_id=data.get("subscriptionId", ""),
            federated_token_file=data.get("federatedTokenFile", ""),
        )


class TokenProvider(ABC):
    """Fetches a Graph access token from the Entra ID token endpoint."""

    def __init__(
        self,
        tenant_id: str,
        client_id: str,
        authority_host: str,
        timeout: float,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.tenant_id = tenant_id
        self.client_id = client_id
        self.authority_host = authority_host.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    @property
    def token_url(self) -> str:
        return f"{self.authority_host}/{self.tenant_id}/oauth2/v2.0/token"

    @abstractmethod
    def _form(self) -> dict[str, str]:
        """Grant-specific form fields added to the token request."""

    def token(self) -> str:
        """Request an access token.

        Raises:
            CredentialError: if the endpoint is unreachable or rejects the request.
        """
        form = {
            "grant_type": "client_credentials",
            "client_id": self.client_id,
            "scope": GRAPH_SCOPE,
            **self._form(),
        }
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                resp = client.post(self.token_url, data=form)
        except httpx.RequestError as e:
            raise CredentialError(f"failed to acquire access token: {e}") from e

        try:
            data = resp.json()
        except ValueError:
            data = {}
        access_token = data.get("access_token", "")
        if resp.status_code != 200 or not access_token:
            detail = data.get("error_description") or data.get("error") or f"HTTP {resp.status_code}"
            raise CredentialError(f"failed to acquire access token: {detail}")
        return access_token


class ClientSecretTokenProvider(TokenProvider):
    def __init__(self, credentials: AzureCredentials, authority_host: str, timeout: float,
                 transport: httpx.BaseTransport | None = None) -> None:
        missing = [
            name
            for name, value in (
                ("tenantId", credentials.tenant_id),
                ("clientId", credentials.client_id),
                ("clientSecret", credentials.client_secret),
            )
            if not value
        ]
        if missing:
            raise CredentialError(
                "failed to initialize service principal provider: "
                f"failed to obtain clientsecret credentials: missing {', '.join(missing)}"
            )
        super().__init__(credentials.tenant_id, credentials.client_id, authority_host, timeout, transport)
        self.client_secret = credentials.client_secret

    def _form(self) -> dict[str, str]:
        return {"client_secret": self.client_secret}


class WorkloadIdentityTokenProvider(TokenProvider):
    def __init__(self, credentials: AzureCredentials, authority_host: str, timeout: float,
                 transport: httpx.BaseTransport | None = None,
                 environ: Mapping[str, str] | None = None) -> None:
        environ = os.environ if environ is None else environ
        tenant_id = credentials.tenant_id or environ.get("AZURE_TENANT_ID", "")
        client_id = credentials.client_id or environ.get("AZURE_CLIENT_ID", "")
        token_file = credentials.federated_token_file or environ.get("AZURE_FEDERATED_TOKEN_FILE", "")
        missing = [
            name
            for name, value in (
                ("tenantId", tenant_id),
                ("clientId", client_id),
                ("federatedTokenFile", token_file),
            )
            if not value
        ]
        if missing:
            raise CredentialError(
                "failed to initialize workload identity provider: "
                f"failed to obtain workloadidentity credentials: missing {', '.join(missing)}"
            )
        super().__init__(tenant_id, client_id, authority_host, timeout, transport)
        self.token_file = token_file

    def _form(self) -> dict[str, str]:
        # The projected token is rotated on disk, so read it per request.
        try:
            with open(self.token_file) as f:
                assertion = f.read().strip()
        except OSError as e:
            raise CredentialError(
                "failed to initialize workload identity provider: "
                f"cannot read federated token file {self.token_file}: {e.strerror}"
            ) from e
        return {
            "client_assertion_type": CLIENT_ASSERTION_TYPE,
            "client_assertion": assertion,
        }


def token_provider_for(
    identity_type: IdentityType,
    credentials: AzureCredentials,
    authority_host: str,
    timeout: float,
    transport: httpx.BaseTransport | None = None,
    environ: Mapping[str, str] | None = None,
) -> TokenProvider:
    """Select the token provider for the configured identity type."""
    if identity_type is IdentityType.AZURE_WORKLOAD_IDENTITY:
        return WorkloadIdentityTokenProvider(credentials, authority_host, timeout, transport, environ)
    return ClientSecretTokenProvider(credentials, authority_host, timeout, transport)
