"""
Core business exceptions for the patch sync application.

This module defines a hierarchy of custom exceptions so that every stage of
the sync pipeline fails with a distinct, catchable type. All of them are
terminal for the current sync run.
"""

from typing import Optional


class PatchSyncError(Exception):
    """Base exception for all component-specific errors."""
    pass


# --- Configuration Errors ---

class ConfigurationError(PatchSyncError):
    """Raised for errors related to application configuration."""
    pass


# --- Infrastructure Errors ---

class InfrastructureError(PatchSyncError):
    """Base class for errors related to external systems (network, disk)."""
    pass


class UpstreamUnavailable(InfrastructureError):
    """Raised when the version list cannot be fetched from the CDN."""
    pass


class MalformedResponse(InfrastructureError):
    """Raised when the version list is not a non-empty list of strings."""
    pass


class DownloadFailed(InfrastructureError):
    """
    Raised when an archive download fails.

    `status` carries the HTTP status code when the server answered with a
    non-success response, and is None for transport failures (timeouts,
    dropped connections, truncated bodies).
    """

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class StorageError(InfrastructureError):
    """Raised when a local file cannot be read or written."""
    pass


# --- Domain/Business Logic Errors ---

class DomainError(PatchSyncError):
    """Base class for errors related to business logic failures."""
    pass


class ExtractionFailed(DomainError):
    """Raised when the archive cannot be unpacked."""
    pass


class ValidationFailed(DomainError):
    """Raised when an unpacked archive lacks the expected manifest file."""
    pass


class CatalogError(DomainError):
    """Raised when installed champion data is missing or unreadable."""
    pass
