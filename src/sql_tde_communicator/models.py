"""Value objects shared by the communicator and its callers."""

from __future__ import annotations

from dataclasses import dataclass

from sql_tde_communicator.config import AzureSubscription

# Note 1: The 2014-04-01 TDE API exposes exactly one configuration per database and
# always names it "current".
TDE_CONFIGURATION_NAME = "current"


@dataclass(frozen=True)
class DatabaseTarget:
    """The database whose encryption setting is read or changed."""

    resource_group_name: str
    server_name: str
    database_name: str

    def resource_id(self, subscription: AzureSubscription) -> str:
        return (
            f"/subscriptions/{subscription.subscription_id}"
            f"/resourceGroups/{self.resource_group_name}"
            f"/providers/Microsoft.Sql"
            f"/servers/{self.server_name}"
            f"/databases/{self.database_name}"
        )
