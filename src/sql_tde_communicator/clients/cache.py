"""Single-slot management client cache keyed by the most recently used subscription."""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager

import structlog

from sql_tde_communicator.clients import ClientFactory, ClientHandle, create_sql_management_client
from sql_tde_communicator.config import AzureProfile, AzureSubscription, EndpointKind

log = structlog.get_logger()

CLIENT_REQUEST_ID_HEADER = "x-ms-client-request-id"


class ScopedClientCache:
    """Holds at most one management client, valid for the last subscription observed.

    Invalidation happens when a communicator is constructed for a different subscription
    (``observe_subscription``); creation happens on the next ``resolve_client``. A handle
    that is already cached is reused on resolve whichever subscription built it.
    """

    def __init__(self, factory: ClientFactory = create_sql_management_client) -> None:
        self._factory = factory
        self._subscription: AzureSubscription | None = None
        self._handle: ClientHandle | None = None
        # RLock because the communicator holds the lock across resolve_client and the
        # remote call, and resolve_client takes it again.
        self._lock = threading.RLock()

    @property
    def subscription(self) -> AzureSubscription | None:
        return self._subscription

    @property
    def handle(self) -> ClientHandle | None:
        return self._handle

    def observe_subscription(self, subscription: AzureSubscription) -> None:
        """Record the subscription a communicator was built for, dropping a stale client."""
        with self._lock:
            if subscription != self._subscription:
                if self._handle is not None:
                    log.info(
                        "sql_client_cache_invalidated",
                        previous_subscription=self._handle.subscription.subscription_id,
                        subscription=subscription.subscription_id,
                    )
                self._subscription = subscription
                self._handle = None

    def resolve_client(
        self,
        profile: AzureProfile,
        subscription: AzureSubscription,
        client_request_id: str,
    ) -> ClientHandle:
        """Return the cached client, creating it if needed, stamped with ``client_request_id``.

        A new client is built for ``subscription`` (the caller's), not for the subscription
        most recently passed to ``observe_subscription``.

        Raises:
            ClientCreationError: If the factory fails. Nothing is cached in that case.
        """
        with self._lock:
            if self._handle is None:
                self._handle = self._factory(profile, subscription, EndpointKind.RESOURCE_MANAGER)
                self._subscription = subscription
            # Note 1: The previous call's id is removed before the new one is inserted so
            # the header set never carries two request ids.
            self._handle.headers.pop(CLIENT_REQUEST_ID_HEADER, None)
            self._handle.headers[CLIENT_REQUEST_ID_HEADER] = client_request_id
            return self._handle

    @contextmanager
    def stamped(
        self,
        profile: AzureProfile,
        subscription: AzureSubscription,
        client_request_id: str,
    ) -> Iterator[ClientHandle]:
        """Resolve the client and keep the cache locked until the caller's request is sent."""
        with self._lock:
            yield self.resolve_client(profile, subscription, client_request_id)

    def invalidate(self) -> None:
        """Forget the cached client and the recorded subscription."""
        with self._lock:
            self._subscription = None
            self._handle = None

    def close(self) -> None:
        """Close the cached SDK client, if any, and forget it."""
        with self._lock:
            handle = self._handle
            self._handle = None
            if handle is not None and hasattr(handle.client, "close"):
                handle.client.close()


_SHARED_CACHE = ScopedClientCache()


def shared_client_cache() -> ScopedClientCache:
    """Return the process-wide cache used by communicators built without an explicit one."""
    return _SHARED_CACHE
