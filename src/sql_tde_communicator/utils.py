"""Shared helpers for request ids and log-safe text."""

from __future__ import annotations

import re
import uuid

_SUBSCRIPTION_PATTERN = re.compile(r"/subscriptions/[a-f0-9-]+", re.IGNORECASE)
_RESOURCE_GROUP_PATTERN = re.compile(r"/resourceGroups/[^/\s'\"]+", re.IGNORECASE)
_UUID_PATTERN = re.compile(r"\b[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}\b", re.IGNORECASE)


def new_client_request_id() -> str:
    """Return a fresh request-correlation id for one command invocation."""
    return str(uuid.uuid4())


def scrub_sensitive_values(text: str) -> str:
    """Remove subscription IDs, resource group names, and other GUIDs from text."""
    if not text:
        return text
    # Resource group first: the subscription pattern would otherwise leave it dangling.
    result = _RESOURCE_GROUP_PATTERN.sub("/resourceGroups/[REDACTED]", text)
    result = _SUBSCRIPTION_PATTERN.sub("/subscriptions/[REDACTED]", result)
    result = _UUID_PATTERN.sub("[REDACTED_ID]", result)
    return result
