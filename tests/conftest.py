"""Shared test fixtures for all test modules."""

# Note 1: conftest.py is loaded by pytest before any test in this directory or its
# subdirectories runs; fixtures defined here are injected by parameter name.
from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from sql_tde_communicator.clients import ClientHandle
from sql_tde_communicator.clients.cache import ScopedClientCache
from sql_tde_communicator.config import AzureProfile, AzureSubscription, EndpointKind

SUB_A_ID = "11111111-1111-1111-1111-111111111111"
SUB_B_ID = "22222222-2222-2222-2222-222222222222"


@pytest.fixture
def sub_a() -> AzureSubscription:
    return AzureSubscription(subscription_id=SUB_A_ID, name="sub-a")


@pytest.fixture
def sub_b() -> AzureSubscription:
    return AzureSubscription(subscription_id=SUB_B_ID, name="sub-b")


@pytest.fixture
def profile(sub_a: AzureSubscription, sub_b: AzureSubscription) -> AzureProfile:
    """A profile with an injected credential so no real Azure login is attempted."""
    return AzureProfile(
        subscriptions={"sub-a": sub_a, "sub-b": sub_b},
        default_subscription="sub-a",
        credential=MagicMock(),
    )


@pytest.fixture
def client_factory() -> MagicMock:
    """A client factory double that returns a fresh handle around a MagicMock SDK client per call."""

    # Note 2: Each call builds a new handle so tests can tell a recreated client apart
    # from a reused one with an `is` check.
    def _create(profile: AzureProfile, subscription: AzureSubscription, endpoint: EndpointKind) -> ClientHandle:
        return ClientHandle(client=MagicMock(), subscription=subscription, endpoint=endpoint)

    return MagicMock(side_effect=_create)


@pytest.fixture
def cache(client_factory: MagicMock) -> ScopedClientCache:
    return ScopedClientCache(factory=client_factory)
