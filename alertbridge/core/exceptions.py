"""
Core Exceptions
================

Custom exceptions for the application following clean architecture principles.

Infrastructure adapters raise these; application services catch them at
their seams and turn them into explicit ``Err`` results (see
``alertbridge.core.result``) so the caller decides whether to log or abort.
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


class RepositoryException(ApplicationException):
    """Base exception for repository/data access errors."""


class TicketStoreException(RepositoryException):
    """The ticket store rejected an operation or could not be reached."""


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


class TicketNotFoundException(ResourceNotFoundException, TicketStoreException):
    """A ticket id does not exist in the store."""

    def __init__(self, ticket_id, details: Optional[dict] = None):
        super().__init__("Ticket", str(ticket_id), details)


class ConfigurationException(ApplicationException):
    """Exception for configuration errors."""


class ExternalServiceException(ApplicationException):
    """Base exception for external service failures."""

    def __init__(
        self,
        service_name: str,
        message: str,
        details: Optional[dict] = None
    ):
        self.service_name = service_name
        super().__init__(f"{service_name}: {message}", details)


class CMDBException(ExternalServiceException):
    """Exception for CMDB API failures."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__("CMDB", message, details)
