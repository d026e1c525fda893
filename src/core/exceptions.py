"""
Core Exceptions
================

Custom exceptions for the application following clean architecture principles.

The intake pipeline is fail-soft for ticket content; these exceptions cover
contract violations by callers and configuration problems only.
"""

from typing import Optional


class ApplicationException(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class DomainException(ApplicationException):
    """Base exception for domain logic violations."""


class ValidationException(ApplicationException):
    """Exception for validation errors."""


class ResourceNotFoundException(ApplicationException):
    """Exception when a requested resource is not found."""

    def __init__(
        self,
        resource_type: str,
        resource_id: Optional[str] = None,
        details: Optional[dict] = None
    ):
        self.resource_type = resource_type
        self.resource_id = resource_id
        message = f"{resource_type}"
        if resource_id:
            message += f" with id '{resource_id}'"
        message += " not found"
        super().__init__(message, details)


class ConfigurationException(ApplicationException):
    """Exception for configuration errors."""


class TicketConflictException(DomainException):
    """Raised when a ticket id is submitted that is already stored."""

    def __init__(self, ticket_id: str, details: Optional[dict] = None):
        self.ticket_id = ticket_id
        super().__init__(
            f"Ticket '{ticket_id}' has already been processed",
            details or {"ticket_id": ticket_id}
        )


class PipelineDisposedException(DomainException):
    """Raised when a disposed pipeline is asked to accept more work."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(
            f"Cannot {operation}: pipeline has been disposed",
            {"operation": operation}
        )
