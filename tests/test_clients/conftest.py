"""Client-specific test fixtures: Azure SDK error responses and TDE payloads."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from azure.core.exceptions import ResourceNotFoundError


# Note 1: ResourceNotFoundError is a real azure-core exception class; building it with a
# message (and no response) is how the SDK surfaces a 404 to callers.
@pytest.fixture
def not_found_error() -> ResourceNotFoundError:
    """A 404 as raised by the Azure SDK for a missing database."""
    error = ResourceNotFoundError(
        message="The requested resource of type 'Microsoft.Sql/servers/databases' with name 'db1' was not found."
    )
    error.status_code = 404
    return error


@pytest.fixture
def mock_tde_state() -> MagicMock:
    """A TransparentDataEncryption model as returned by the service."""
    state = MagicMock()
    state.status = "Enabled"
    state.name = "current"
    return state
