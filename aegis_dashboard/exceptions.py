"""Custom exceptions for the Aegis dashboard."""

from __future__ import annotations

from typing import Any


class AegisDashboardError(Exception):
    """Base exception for all Aegis dashboard errors."""

    pass


class ConfigurationError(AegisDashboardError):
    """Raised when service configuration is invalid or missing."""

    pass


class UnknownEntityTypeError(AegisDashboardError):
    """Raised when an entity type tag is not registered with the store."""

    pass


class AlreadyExistsError(AegisDashboardError):
    """Raised when creating an entity whose id is already stored."""

    def __init__(self, entity_type: str, entity_id: str) -> None:
        super().__init__(f"{entity_type} '{entity_id}' already exists")
        self.entity_type = entity_type
        self.entity_id = entity_id


class NotFoundError(AegisDashboardError):
    """Raised when a locally stored entity is absent."""

    def __init__(self, entity_type: str, entity_id: str) -> None:
        super().__init__(f"{entity_type} '{entity_id}' not found")
        self.entity_type = entity_type
        self.entity_id = entity_id


class IntegrationError(AegisDashboardError):
    """Base class for failures reading from an external integration."""

    def __init__(self, integration: str, message: str) -> None:
        super().__init__(message)
        self.integration = integration

    def as_dict(self) -> dict[str, Any]:
        """Return a serializable representation for API responses and logs."""

        return {
            "integration": self.integration,
            "error_type": self.__class__.__name__,
            "message": str(self),
        }


class NotConfiguredError(IntegrationError):
    """Raised when an integration is disabled or has no endpoint configured."""

    def __init__(self, integration: str) -> None:
        super().__init__(
            integration,
            f"{integration} integration is not configured or enabled.",
        )


class MissingCredentialsError(IntegrationError):
    """Raised when the environment variables named by an integration are unset."""

    def __init__(self, integration: str, missing_vars: list[str]) -> None:
        joined = ", ".join(missing_vars)
        super().__init__(
            integration,
            f"{integration} credentials are not set (missing: {joined}).",
        )
        self.missing_vars = missing_vars


class UpstreamError(IntegrationError):
    """Raised when the external system is reachable but the read failed."""

    def __init__(self, integration: str, message: str, status: int | None = None) -> None:
        super().__init__(integration, message)
        self.status = status

    def as_dict(self) -> dict[str, Any]:
        payload = super().as_dict()
        payload["status"] = self.status
        return payload


class MalformedUpstreamDataError(IntegrationError):
    """Raised when an upstream response body cannot be decoded as JSON."""

    pass
