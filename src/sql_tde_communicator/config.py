"""Azure environments, subscriptions, credential profile, and environment variable overrides."""

from __future__ import annotations

import enum
import os
import re
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from azure.core.credentials import TokenCredential
from azure.identity import DefaultAzureCredential

from sql_tde_communicator.errors import ProfileConfigError


class EndpointKind(enum.Enum):
    """Service endpoints an Azure environment exposes."""

    RESOURCE_MANAGER = "resource_manager"
    ACTIVE_DIRECTORY = "active_directory"


@dataclass(frozen=True)
class AzureEnvironment:
    """Endpoint table for one Azure cloud."""

    name: str
    resource_manager: str
    active_directory: str

    def endpoint(self, kind: EndpointKind) -> str:
        return getattr(self, kind.value)

    @property
    def resource_manager_scope(self) -> str:
        # Note 1: ARM tokens are requested for "<resource manager url>/.default"; the
        # trailing slash on the endpoint must not be doubled.
        return self.resource_manager.rstrip("/") + "/.default"


KNOWN_ENVIRONMENTS: dict[str, AzureEnvironment] = {
    "AzureCloud": AzureEnvironment(
        name="AzureCloud",
        resource_manager="https://management.azure.com/",
        active_directory="https://login.microsoftonline.com/",
    ),
    "AzureUSGovernment": AzureEnvironment(
        name="AzureUSGovernment",
        resource_manager="https://management.usgovcloudapi.net/",
        active_directory="https://login.microsoftonline.us/",
    ),
    "AzureChinaCloud": AzureEnvironment(
        name="AzureChinaCloud",
        resource_manager="https://management.chinacloudapi.cn/",
        active_directory="https://login.chinacloudapi.cn/",
    ),
}


@dataclass(frozen=True)
class AzureSubscription:
    """Identity of the subscription a management client is scoped to.

    Two subscriptions are the same scope exactly when they compare equal.
    """

    subscription_id: str
    name: str = ""
    tenant_id: str | None = None


class AzureProfile:
    """Authentication context shared by every communicator built from it.

    Holds the cloud environment, the named subscriptions from the profile file, and a
    lazily created credential.
    """

    def __init__(
        self,
        environment: AzureEnvironment | None = None,
        subscriptions: dict[str, AzureSubscription] | None = None,
        default_subscription: str | None = None,
        credential: TokenCredential | None = None,
    ) -> None:
        self.environment = environment or KNOWN_ENVIRONMENTS["AzureCloud"]
        self.subscriptions: dict[str, AzureSubscription] = dict(subscriptions or {})
        self.default_subscription = default_subscription
        self._credential = credential
        self._lock = threading.RLock()

    def get_credential(self) -> TokenCredential:
        # Note 2: DefaultAzureCredential is created once per profile so the SDK can cache
        # and refresh tokens across every client built from this profile.
        with self._lock:
            if self._credential is None:
                authority = self.environment.endpoint(EndpointKind.ACTIVE_DIRECTORY)
                self._credential = DefaultAzureCredential(authority=authority)
            return self._credential

    def resolve_subscription(self, name_or_id: str | None = None) -> AzureSubscription:
        """Look up a subscription by profile name or subscription id.

        With no argument the profile's default subscription is returned.

        Raises:
            ProfileConfigError: If nothing matches.
        """
        key = name_or_id if name_or_id is not None else self.default_subscription
        if key is None:
            msg = "No subscription given and the profile has no default_subscription."
            raise ProfileConfigError(msg)
        if key in self.subscriptions:
            return self.subscriptions[key]
        for subscription in self.subscriptions.values():
            if subscription.subscription_id.lower() == key.lower():
                return subscription
        valid = ", ".join(sorted(self.subscriptions))
        msg = f"Unknown subscription {key!r}. Valid subscriptions: {valid}"
        raise ProfileConfigError(msg)


@dataclass(frozen=True)
class LoggingConfig:
    """Logging settings with environment variable overrides."""

    level: str = field(default_factory=lambda: os.environ.get("SQL_TDE_LOG_LEVEL", "INFO").upper())
    format: str = field(default_factory=lambda: os.environ.get("SQL_TDE_LOG_FORMAT", "auto").lower())


def _parse_profile(raw: Any, path: Path) -> AzureProfile:
    if not isinstance(raw, dict) or "subscriptions" not in raw:
        msg = f"Profile file {path} must contain a top-level 'subscriptions' key."
        raise ProfileConfigError(msg)

    env_name = str(raw.get("environment", "AzureCloud"))
    if env_name not in KNOWN_ENVIRONMENTS:
        valid = ", ".join(sorted(KNOWN_ENVIRONMENTS))
        msg = f"Unknown Azure environment {env_name!r} in {path}. Valid environments: {valid}"
        raise ProfileConfigError(msg)

    subscriptions_raw = raw["subscriptions"]
    if not isinstance(subscriptions_raw, dict) or len(subscriptions_raw) == 0:
        msg = f"Profile file {path} has an empty or invalid 'subscriptions' section."
        raise ProfileConfigError(msg)

    subscriptions: dict[str, AzureSubscription] = {}
    for name, entry in subscriptions_raw.items():
        if not isinstance(entry, dict):
            msg = f"Subscription '{name}' must be a mapping, got {type(entry).__name__}."
            raise ProfileConfigError(msg)
        if "subscription_id" not in entry:
            msg = f"Subscription '{name}' is missing required field: subscription_id."
            raise ProfileConfigError(msg)
        tenant_id = entry.get("tenant_id")
        subscriptions[str(name)] = AzureSubscription(
            subscription_id=str(entry["subscription_id"]),
            name=str(name),
            tenant_id=str(tenant_id) if tenant_id is not None else None,
        )

    default = raw.get("default_subscription")
    if default is not None and str(default) not in subscriptions:
        msg = f"default_subscription {default!r} is not defined in {path}."
        raise ProfileConfigError(msg)

    return AzureProfile(
        environment=KNOWN_ENVIRONMENTS[env_name],
        subscriptions=subscriptions,
        default_subscription=str(default) if default is not None else None,
    )


def load_profile(path: Path | str | None = None) -> AzureProfile:
    """Load an AzureProfile from a YAML profile file.

    The path defaults to the ``SQL_TDE_PROFILE`` environment variable, falling back to
    ``azure_profile.yaml`` in the current working directory.

    Raises:
        FileNotFoundError: If the profile file does not exist.
        ProfileConfigError: If the file content is malformed.
    """
    profile_path = Path(path) if path is not None else Path(os.environ.get("SQL_TDE_PROFILE", "azure_profile.yaml"))
    if not profile_path.exists():
        msg = (
            f"Profile file not found: {profile_path}. "
            "Create one with a 'subscriptions' mapping, or set SQL_TDE_PROFILE to point to it."
        )
        raise FileNotFoundError(msg)

    return _parse_profile(yaml.safe_load(profile_path.read_text()), profile_path)


_UUID_RE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE)


def validate_profile(profile: AzureProfile) -> None:
    """Validate every subscription in the profile before first use.

    Raises RuntimeError if placeholder or malformed subscription IDs are detected.
    """
    errors: list[str] = []
    for name, subscription in profile.subscriptions.items():
        sub_id = subscription.subscription_id
        if sub_id.startswith("<") and sub_id.endswith(">"):
            errors.append(f"{name}: placeholder subscription_id detected")
        elif not _UUID_RE.match(sub_id):
            errors.append(f"{name}: subscription_id is not a valid UUID")
        if subscription.tenant_id is not None and not _UUID_RE.match(subscription.tenant_id):
            errors.append(f"{name}: tenant_id is not a valid UUID")

    if errors:
        detail = "; ".join(errors)
        msg = f"Profile configuration errors: {detail}."
        raise RuntimeError(msg)


def get_logging_config() -> LoggingConfig:
    """Return logging configuration with environment variable overrides applied."""
    return LoggingConfig()
