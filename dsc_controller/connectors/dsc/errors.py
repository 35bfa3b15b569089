"""
Error taxonomy for the Dataspace Connector controller.

Every error carries the structured data needed for diagnostics as attributes;
the message is only a human-readable summary.
"""

from __future__ import annotations

from typing import Any


class DSCControllerError(RuntimeError):
    """Base class for all controller errors."""


class InvalidPolicyError(DSCControllerError, ValueError):
    """Raised when a usage policy carries parameters that cannot be encoded."""

    def __init__(self, message: str, policy: Any = None) -> None:
        super().__init__(message)
        self.policy = policy


class MissingSelfLinkError(DSCControllerError):
    """Raised when a resource descriptor has no ``_links.self.href``."""

    def __init__(self, descriptor: Any) -> None:
        super().__init__("Resource descriptor has no self link")
        self.descriptor = descriptor


class MalformedReferenceError(DSCControllerError):
    """Raised when a resource reference has no path segment to use as identifier."""

    def __init__(self, ref: str) -> None:
        super().__init__(f"Resource reference {ref!r} has no path segments")
        self.ref = ref


class MalformedDescriptionError(DSCControllerError):
    """Raised when a remote document lacks fields the IDS vocabulary requires."""

    def __init__(
        self,
        message: str,
        document: Any = None,
        errors: list[dict[str, Any]] | None = None,
    ) -> None:
        super().__init__(message)
        self.document = document
        self.errors = errors or []


class EmptyCatalogError(DSCControllerError):
    """Raised when a remote connector advertises nothing to negotiate."""

    def __init__(self, endpoint_url: str, message: str | None = None) -> None:
        super().__init__(message or f"Connector {endpoint_url} advertises no resource catalog")
        self.endpoint_url = endpoint_url


class NegotiationRejectedError(DSCControllerError):
    """Raised when the remote connector declines a contract request."""

    def __init__(self, status_code: int, payload: Any) -> None:
        super().__init__(f"Contract request rejected with HTTP {status_code}")
        self.status_code = status_code
        self.payload = payload


class NoRouteConfiguredError(DSCControllerError):
    """Raised when a transfer is requested before a sink route was provisioned."""

    def __init__(self, contract_id: str) -> None:
        super().__init__(
            "No sink route has been provisioned. Use fetch() or provision a route "
            "with provision_http_sink() before transferring agreement artifacts."
        )
        self.contract_id = contract_id


class UnboundRuleError(DSCControllerError):
    """Raised when a permission rule would be sent without a target."""

    def __init__(self, rule: Any) -> None:
        super().__init__("Permission rule has no target bound")
        self.rule = rule


class InvalidArtifactSourceError(DSCControllerError, ValueError):
    """Raised when an artifact data source is described inconsistently."""
