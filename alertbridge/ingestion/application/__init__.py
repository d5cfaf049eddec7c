"""
Ingestion Application Layer
===========================

Contains:
- AlertValidator: raw bytes -> AlertPayload
- WebhookAuthenticator: caller checks before any side effect
- AlertIngestionService: the webhook pipeline
"""

from alertbridge.ingestion.application.validator import (
    AlertValidator,
    ValidationError,
    ValidationErrorKind,
)
from alertbridge.ingestion.application.authenticator import (
    WebhookAuthenticator,
    AuthError,
    AuthErrorKind,
    AuthenticatedSource,
)
from alertbridge.ingestion.application.services import (
    AlertIngestionService,
    IngestionOutcome,
    build_incident_fields,
)

__all__ = [
    "AlertValidator",
    "ValidationError",
    "ValidationErrorKind",
    "WebhookAuthenticator",
    "AuthError",
    "AuthErrorKind",
    "AuthenticatedSource",
    "AlertIngestionService",
    "IngestionOutcome",
    "build_incident_fields",
]
