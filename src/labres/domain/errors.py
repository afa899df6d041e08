"""Error taxonomy shared by the domain services and the adapters behind the ports."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from labres.domain.model import NotificationDestination, ResourceUsage


class LabresError(Exception):
    """Base class for domain level failures."""


class DeviceSpecError(LabresError, ValueError):
    """Raised when a device specification cannot be parsed."""


class EmptyDeviceSpecError(DeviceSpecError):
    def __init__(self) -> None:
        super().__init__("Device specification is empty")


class InvalidDeviceTokenError(DeviceSpecError):
    def __init__(self, token: str) -> None:
        super().__init__(f"Invalid device token: {token!r}")
        self.token = token


class ValidationError(LabresError, ValueError):
    """Raised when a command carries malformed or inconsistent input."""


class UnknownCollectionError(ValidationError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown resource collection: {name}")
        self.name = name


class ConflictError(LabresError):
    """Raised when a reservation overlaps an existing usage."""

    def __init__(self, conflicting: ResourceUsage) -> None:
        super().__init__(
            f"Conflicts with usage {conflicting.id} by {conflicting.owner} "
            f"({conflicting.period.start.isoformat()} - {conflicting.period.end.isoformat()})"
        )
        self.conflicting = conflicting


class UnauthorizedError(LabresError):
    """Raised when an actor modifies a usage owned by someone else."""


class UsageNotFoundError(LabresError, LookupError):
    def __init__(self, collection_id: str, usage_id: str) -> None:
        super().__init__(f"Usage {usage_id} not found in {collection_id}")
        self.collection_id = collection_id
        self.usage_id = usage_id


class IdentityConflictError(LabresError):
    """Raised when an email is already linked to a different chat user."""

    def __init__(self, email: str, chat_user_id: str) -> None:
        super().__init__(f"{email} is already linked to chat user {chat_user_id}")
        self.email = email
        self.chat_user_id = chat_user_id


class FetchError(LabresError):
    """Raised by repositories when a snapshot cannot be fetched."""


class RepositoryError(LabresError):
    """Raised by repositories when a write operation fails."""


class DeliveryError(LabresError):
    """Raised by notifiers when a message cannot be delivered."""

    def __init__(self, message: str, *, destination: NotificationDestination | None = None) -> None:
        super().__init__(message)
        self.destination = destination


class AccessGrantError(LabresError):
    """Raised by access control adapters when a grant fails for one collection."""

    def __init__(self, message: str, *, source_id: str | None = None) -> None:
        super().__init__(message)
        self.source_id = source_id


__all__ = [
    "AccessGrantError",
    "ConflictError",
    "DeliveryError",
    "DeviceSpecError",
    "EmptyDeviceSpecError",
    "FetchError",
    "IdentityConflictError",
    "InvalidDeviceTokenError",
    "LabresError",
    "RepositoryError",
    "UnauthorizedError",
    "UnknownCollectionError",
    "UsageNotFoundError",
    "ValidationError",
]
