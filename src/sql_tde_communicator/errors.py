"""Error taxonomy for the TDE communicator."""

from __future__ import annotations

# Note 1: Every non-success response from the ARM endpoints is raised by the SDK as an
# HttpResponseError (or one of its subclasses: ResourceNotFoundError,
# ClientAuthenticationError, ResourceExistsError). The communicator never wraps these, so
# the alias below is the same class callers catch, with status_code and error detail intact.
from azure.core.exceptions import HttpResponseError

RemoteServiceError = HttpResponseError


class SqlTdeError(Exception):
    """Base class for errors raised by this package."""


class ClientCreationError(SqlTdeError):
    """The client factory could not produce a management client."""

    def __init__(self, message: str, *, subscription_id: str | None = None) -> None:
        super().__init__(message)
        self.subscription_id = subscription_id


class ProfileConfigError(SqlTdeError, ValueError):
    """The profile file or a subscription/environment lookup is invalid."""
