"""Domain errors raised by core use cases."""

from __future__ import annotations


class ContentError(Exception):
    """Base exception for content use-case errors."""


class ValidationError(ContentError):
    """Raised when a resource fails domain validation."""


class ResourceNotFoundError(ContentError):
    """Raised when a resource does not exist for the given owner."""

    def __init__(self, resource: str, identifier: object) -> None:
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} with identifier '{identifier}' was not found")


class AssetUploadError(ContentError):
    """Raised when the original asset could not be stored."""


class PersistenceError(ContentError):
    """Raised when the repository rejects a write."""


class ChatError(ContentError):
    """Raised when a chat request fails at one of its stages."""

    def __init__(self, stage: str, message: str) -> None:
        self.stage = stage
        super().__init__(f"{stage}: {message}")


__all__ = [
    "AssetUploadError",
    "ChatError",
    "ContentError",
    "PersistenceError",
    "ResourceNotFoundError",
    "ValidationError",
]
