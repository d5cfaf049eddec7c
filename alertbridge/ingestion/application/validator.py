"""
Alert Validator
===============

Turns raw webhook bytes into an immutable AlertPayload.

Every string field goes through the allow-list StringSanitizer; nothing here
raises on bad input, all rejections come back as ``Err(ValidationError)``.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError

from alertbridge.config import Severity
from alertbridge.config.runtime import IConfigProvider, WebhookConfig
from alertbridge.core import Err, Ok, Result, StringSanitizer
from alertbridge.ingestion.domain import AlertPayload
from alertbridge.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class ValidationErrorKind(str, Enum):
    PAYLOAD_TOO_LARGE = "payload_too_large"
    MALFORMED_PAYLOAD = "malformed_payload"
    MISSING_SUMMARY = "missing_summary"


@dataclass(frozen=True)
class ValidationError:
    kind: ValidationErrorKind
    message: str

    @property
    def http_status(self) -> int:
        return 400


def get_header(headers: Mapping[str, str], name: str) -> Optional[str]:
    """Case-insensitive header lookup that works for plain dicts too."""
    value = headers.get(name)
    if value is not None:
        return value
    wanted = name.lower()
    for key, candidate in headers.items():
        if key.lower() == wanted:
            return candidate
    return None


class AlertValidator:
    """
    Validates and sanitizes inbound alert payloads.

    Limits (payload size, string length, tag count, allowed characters) are
    read from the webhook section of the runtime config on every call.
    """

    def __init__(self, config_provider: IConfigProvider):
        self._config_provider = config_provider

    def check_size(
        self,
        raw_body: bytes,
        headers: Mapping[str, str]
    ) -> Optional[ValidationError]:
        """PAYLOAD_TOO_LARGE when the declared or actual size exceeds the limit."""
        limit = self._config_provider.get_config().webhook.max_payload_bytes

        declared = get_header(headers, "Content-Length")
        if declared is not None:
            try:
                if int(declared) > limit:
                    return ValidationError(ValidationErrorKind.PAYLOAD_TOO_LARGE, "Payload too large")
            except ValueError:
                pass

        if len(raw_body) > limit:
            return ValidationError(ValidationErrorKind.PAYLOAD_TOO_LARGE, "Payload too large")
        return None

    def validate(
        self,
        raw_body: bytes,
        headers: Mapping[str, str]
    ) -> Result[AlertPayload, ValidationError]:
        config = self._config_provider.get_config().webhook

        size_error = self.check_size(raw_body, headers)
        if size_error is not None:
            return Err(size_error)

        if not raw_body:
            return Err(ValidationError(ValidationErrorKind.MALFORMED_PAYLOAD, "Empty payload"))

        try:
            data = json.loads(raw_body.decode("utf-8"))
        except UnicodeDecodeError:
            return Err(ValidationError(ValidationErrorKind.MALFORMED_PAYLOAD, "Payload is not valid UTF-8"))
        except ValueError:
            return Err(ValidationError(ValidationErrorKind.MALFORMED_PAYLOAD, "Invalid JSON payload"))

        if not isinstance(data, dict):
            return Err(ValidationError(ValidationErrorKind.MALFORMED_PAYLOAD, "Payload must be a JSON object"))

        sanitizer = StringSanitizer(
            max_length=config.max_string_length,
            allowed_characters=config.allowed_characters
        )

        summary = sanitizer.clean(data.get("summary"))
        if summary is None:
            logger.warning("Alert payload missing required 'summary' field")
            return Err(ValidationError(ValidationErrorKind.MISSING_SUMMARY, "Missing required field: summary"))

        tags = self._clean_tags(data.get("tags"), sanitizer, config)
        if tags is None:
            return Err(ValidationError(ValidationErrorKind.MALFORMED_PAYLOAD, "'tags' must be a list"))

        try:
            payload = AlertPayload(
                summary=summary,
                description=sanitizer.clean_or_default(data.get("description"), ""),
                ci_id=sanitizer.clean(data.get("ciId")),
                service=sanitizer.clean(data.get("service")),
                severity=self._parse_severity(sanitizer.clean(data.get("severity"))),
                alert_type=sanitizer.clean_or_default(data.get("alertType"), "Incident"),
                environment=sanitizer.clean(data.get("environment")),
                component=sanitizer.clean(data.get("component")),
                tags=tags,
            )
        except PydanticValidationError as e:
            logger.warning("Alert payload rejected", extra={"errors": e.error_count()})
            return Err(ValidationError(ValidationErrorKind.MALFORMED_PAYLOAD, "Invalid alert payload"))
        return Ok(payload)

    @staticmethod
    def _parse_severity(value: Optional[str]) -> Severity:
        if value is None:
            return Severity.MEDIUM
        severity = Severity.parse(value)
        if severity is None:
            logger.warning("Unknown severity, using Medium", extra={"severity": value})
            return Severity.MEDIUM
        return severity

    @staticmethod
    def _clean_tags(
        raw: Any,
        sanitizer: StringSanitizer,
        config: WebhookConfig
    ) -> Optional[Tuple[str, ...]]:
        if raw is None:
            return ()
        if not isinstance(raw, list):
            return None

        tags = []
        for item in raw:
            if len(tags) >= config.max_tags:
                break
            tag = sanitizer.clean(item)
            if tag is not None:
                tags.append(tag)
        return tuple(tags)
