"""Client factory binding for the Azure SQL management plane."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

import structlog
from azure.core.exceptions import ClientAuthenticationError
from azure.core.utils import CaseInsensitiveDict
from azure.identity import CredentialUnavailableError

# Note 1: SqlManagementClient talks to the Microsoft.Sql resource provider through Azure
# Resource Manager. Its transparent_data_encryptions and
# transparent_data_encryption_activities operation groups are the two surfaces used here.
from azure.mgmt.sql import SqlManagementClient

from sql_tde_communicator.config import AzureProfile, AzureSubscription, EndpointKind
from sql_tde_communicator.errors import ClientCreationError

log = structlog.get_logger()


@dataclass
class ClientHandle:
    """A management client together with the headers sent on each of its requests."""

    client: Any
    subscription: AzureSubscription
    endpoint: EndpointKind = EndpointKind.RESOURCE_MANAGER
    # Note 2: HTTP header names are case-insensitive, so removing "x-ms-client-request-id"
    # must also remove "X-MS-Client-Request-Id". CaseInsensitiveDict keys by lowercase.
    headers: CaseInsensitiveDict = field(default_factory=CaseInsensitiveDict)


class ClientFactory(Protocol):
    def __call__(
        self,
        profile: AzureProfile,
        subscription: AzureSubscription,
        endpoint: EndpointKind,
    ) -> ClientHandle: ...


def create_sql_management_client(
    profile: AzureProfile,
    subscription: AzureSubscription,
    endpoint: EndpointKind = EndpointKind.RESOURCE_MANAGER,
) -> ClientHandle:
    """Create a SqlManagementClient bound to one subscription.

    The client talks to the profile environment's endpoint for ``endpoint`` and
    authenticates with the profile's credential. One token is requested up front so a
    missing or expired login fails here instead of on the first remote call.

    Raises:
        ClientCreationError: If no token can be obtained or the SDK client cannot be constructed.
    """
    base_url = profile.environment.endpoint(endpoint)
    scope = profile.environment.resource_manager_scope
    try:
        credential = profile.get_credential()
        # Note 3: SqlManagementClient only asks the credential for a token when its
        # pipeline sends the first request; get_token here runs the credential chain now.
        credential.get_token(scope)
        client = SqlManagementClient(
            credential=credential,
            subscription_id=subscription.subscription_id,
            base_url=base_url,
            credential_scopes=[scope],
        )
    except (ClientAuthenticationError, CredentialUnavailableError, ValueError) as exc:
        log.error(
            "failed_to_create_sql_client",
            subscription=subscription.name or subscription.subscription_id,
            endpoint=endpoint.value,
            error=str(exc),
        )
        msg = f"Could not create SQL management client for subscription {subscription.subscription_id}: {exc}"
        raise ClientCreationError(msg, subscription_id=subscription.subscription_id) from exc

    log.info(
        "sql_client_created",
        subscription=subscription.name or subscription.subscription_id,
        environment=profile.environment.name,
        base_url=base_url,
    )
    return ClientHandle(client=client, subscription=subscription, endpoint=endpoint)
