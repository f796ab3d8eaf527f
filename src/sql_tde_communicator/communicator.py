"""Transparent Data Encryption calls against the Azure SQL management API."""

from __future__ import annotations

from typing import Any

import structlog
from structlog.contextvars import bound_contextvars

from sql_tde_communicator.clients.cache import ScopedClientCache, shared_client_cache
from sql_tde_communicator.config import AzureProfile, AzureSubscription
from sql_tde_communicator.models import TDE_CONFIGURATION_NAME, DatabaseTarget
from sql_tde_communicator.utils import scrub_sensitive_values

log = structlog.get_logger()


class TransparentDataEncryptionCommunicator:
    """Reads and changes database TDE settings through a cached SqlManagementClient.

    Every communicator shares the client held by its cache (the process-wide one unless
    ``cache`` is given). Constructing a communicator for a different subscription than the
    previous one drops that client; the replacement is created on the next call.
    """

    def __init__(
        self,
        profile: AzureProfile,
        subscription: AzureSubscription,
        cache: ScopedClientCache | None = None,
    ) -> None:
        self.profile = profile
        self.subscription = subscription
        self._cache = cache if cache is not None else shared_client_cache()
        self._cache.observe_subscription(subscription)

    def get(
        self,
        resource_group_name: str,
        server_name: str,
        database_name: str,
        client_request_id: str,
    ) -> Any:
        """Get the TDE configuration of a database.

        Returns the service's TransparentDataEncryption model unchanged.
        """
        target = DatabaseTarget(resource_group_name, server_name, database_name)
        with (
            bound_contextvars(client_request_id=client_request_id),
            self._cache.stamped(self.profile, self.subscription, client_request_id) as handle,
        ):
            try:
                return handle.client.transparent_data_encryptions.get(
                    resource_group_name=resource_group_name,
                    server_name=server_name,
                    database_name=database_name,
                    transparent_data_encryption_name=TDE_CONFIGURATION_NAME,
                    headers=dict(handle.headers),
                )
            except Exception as e:
                self._log_failure("failed_to_get_transparent_data_encryption", target, e)
                raise

    def create_or_update(
        self,
        resource_group_name: str,
        server_name: str,
        database_name: str,
        client_request_id: str,
        parameters: Any,
    ) -> Any:
        """Set the TDE state of a database.

        ``parameters`` (a TransparentDataEncryption model or the equivalent dict, e.g.
        ``{"status": "Enabled"}``) is sent as given; the state confirmed by the service is
        returned unchanged.
        """
        target = DatabaseTarget(resource_group_name, server_name, database_name)
        with (
            bound_contextvars(client_request_id=client_request_id),
            self._cache.stamped(self.profile, self.subscription, client_request_id) as handle,
        ):
            try:
                result = handle.client.transparent_data_encryptions.create_or_update(
                    resource_group_name=resource_group_name,
                    server_name=server_name,
                    database_name=database_name,
                    transparent_data_encryption_name=TDE_CONFIGURATION_NAME,
                    parameters=parameters,
                    headers=dict(handle.headers),
                )
            except Exception as e:
                self._log_failure("failed_to_update_transparent_data_encryption", target, e)
                raise
        log.info(
            "transparent_data_encryption_updated",
            server=server_name,
            database=database_name,
            status=getattr(result, "status", None),
        )
        return result

    def list_activity(
        self,
        resource_group_name: str,
        server_name: str,
        database_name: str,
        client_request_id: str,
    ) -> list[Any]:
        """List TDE scan activity for a database, in the order the service reports it."""
        target = DatabaseTarget(resource_group_name, server_name, database_name)
        with (
            bound_contextvars(client_request_id=client_request_id),
            self._cache.stamped(self.profile, self.subscription, client_request_id) as handle,
        ):
            try:
                # Note 1: list_by_configuration returns a lazy ItemPaged; list() issues the
                # request while the stamped header and the cache lock are still held.
                return list(
                    handle.client.transparent_data_encryption_activities.list_by_configuration(
                        resource_group_name=resource_group_name,
                        server_name=server_name,
                        database_name=database_name,
                        transparent_data_encryption_name=TDE_CONFIGURATION_NAME,
                        headers=dict(handle.headers),
                    )
                )
            except Exception as e:
                self._log_failure("failed_to_list_transparent_data_encryption_activity", target, e)
                raise

    def _log_failure(self, event: str, target: DatabaseTarget, error: Exception) -> None:
        log.error(
            event,
            resource_id=scrub_sensitive_values(target.resource_id(self.subscription)),
            server=target.server_name,
            database=target.database_name,
            status_code=getattr(error, "status_code", None),
            error=scrub_sensitive_values(str(error)),
        )
