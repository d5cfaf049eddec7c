"""
Core Module
============

Shared core utilities and abstractions used across the application.

This module contains framework-agnostic code that defines the fundamental
building blocks of the system.
"""

from alertbridge.core.exceptions import (
    ApplicationException,
    DomainException,
    RepositoryException,
    TicketStoreException,
    TicketNotFoundException,
    ValidationException,
    ResourceNotFoundException,
    ConfigurationException,
    ExternalServiceException,
    CMDBException,
)
from alertbridge.core.result import Ok, Err, Result
from alertbridge.core.sanitization import StringSanitizer

__all__ = [
    "ApplicationException",
    "DomainException",
    "RepositoryException",
    "TicketStoreException",
    "TicketNotFoundException",
    "ValidationException",
    "ResourceNotFoundException",
    "ConfigurationException",
    "ExternalServiceException",
    "CMDBException",
    "Ok",
    "Err",
    "Result",
    "StringSanitizer",
]
