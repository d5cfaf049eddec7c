"""
Webhook Authenticator
=====================

Decides whether an inbound webhook call may create tickets.

Checks run in a fixed order and stop at the first failure:

1. Authorization and X-Webhook-Source headers present
2. Declared source is configured
3. Client IP inside the allow-list (empty list = unrestricted)
4. Bearer token matches the source's token
5. X-Webhook-Signature matches HMAC-SHA256(signing_secret, raw body),
   when present or required by the source

Secrets and signatures are compared with ``hmac.compare_digest``. No I/O.
"""

import hashlib
import hmac
import ipaddress
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Mapping, Optional

from alertbridge.config.runtime import IConfigProvider
from alertbridge.core import Err, Ok, Result
from alertbridge.ingestion.application.validator import get_header
from alertbridge.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

AUTHORIZATION_HEADER = "Authorization"
SOURCE_HEADER = "X-Webhook-Source"
SIGNATURE_HEADER = "X-Webhook-Signature"
SIGNATURE_PREFIX = "sha256="


class AuthErrorKind(str, Enum):
    MISSING_CREDENTIAL = "missing_credential"
    SOURCE_NOT_ALLOWED = "source_not_allowed"
    IP_NOT_ALLOWED = "ip_not_allowed"
    INVALID_CREDENTIAL = "invalid_credential"
    INVALID_SIGNATURE = "invalid_signature"


_FORBIDDEN = (AuthErrorKind.SOURCE_NOT_ALLOWED, AuthErrorKind.IP_NOT_ALLOWED)


@dataclass(frozen=True)
class AuthError:
    kind: AuthErrorKind
    message: str

    @property
    def http_status(self) -> int:
        return 403 if self.kind in _FORBIDDEN else 401


@dataclass(frozen=True)
class AuthenticatedSource:
    """A caller that passed every check."""
    name: str
    client_ip: Optional[str] = None
    signed: bool = False


def ip_allowed(client_ip: Optional[str], allowlist: Iterable[str]) -> bool:
    """Check a client address against CIDR blocks; an empty allow-list admits all."""
    entries = [entry for entry in allowlist if entry and entry.strip()]
    if not entries:
        return True
    if not client_ip:
        return False

    try:
        address = ipaddress.ip_address(client_ip.strip())
    except ValueError:
        return False
    if isinstance(address, ipaddress.IPv6Address) and address.ipv4_mapped is not None:
        address = address.ipv4_mapped

    for entry in entries:
        try:
            network = ipaddress.ip_network(entry.strip(), strict=False)
        except ValueError:
            logger.warning("Ignoring invalid IP allow-list entry", extra={"entry": entry})
            continue
        if address.version == network.version and address in network:
            return True
    return False


def compute_signature(secret: str, raw_body: bytes) -> str:
    """Hex HMAC-SHA256 of the raw body."""
    return hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).hexdigest()


class WebhookAuthenticator:
    """Authenticates webhook calls against the configured sources."""

    def __init__(self, config_provider: IConfigProvider):
        self._config_provider = config_provider

    def authenticate(
        self,
        headers: Mapping[str, str],
        raw_body: bytes,
        declared_source: Optional[str] = None,
        client_ip: Optional[str] = None,
    ) -> Result[AuthenticatedSource, AuthError]:
        config = self._config_provider.get_config().webhook

        authorization = (get_header(headers, AUTHORIZATION_HEADER) or "").strip()
        if declared_source is None:
            declared_source = get_header(headers, SOURCE_HEADER)
        source_name = (declared_source or "").strip()

        if not authorization or not source_name:
            return Err(AuthError(AuthErrorKind.MISSING_CREDENTIAL, "Missing credentials"))

        source = config.get_source(source_name)
        if source is None or not source.token.get_secret_value():
            return Err(AuthError(AuthErrorKind.SOURCE_NOT_ALLOWED, "Invalid webhook source"))

        if not ip_allowed(client_ip, config.ip_allowlist):
            return Err(AuthError(AuthErrorKind.IP_NOT_ALLOWED, "IP not allowed"))

        scheme, _, token = authorization.partition(" ")
        token = token.strip()
        if scheme.lower() != "bearer" or not token or not hmac.compare_digest(
            token.encode("utf-8"),
            source.token.get_secret_value().encode("utf-8")
        ):
            return Err(AuthError(AuthErrorKind.INVALID_CREDENTIAL, "Unauthorized"))

        signature = (get_header(headers, SIGNATURE_HEADER) or "").strip()
        if not signature and not source.require_signature:
            return Ok(AuthenticatedSource(name=source.name, client_ip=client_ip))

        if not signature:
            return Err(AuthError(AuthErrorKind.MISSING_CREDENTIAL, "Missing signature"))

        if source.signing_secret is None:
            logger.warning("Signature sent but no signing secret configured", extra={"source": source.name})
            return Err(AuthError(AuthErrorKind.INVALID_SIGNATURE, "Invalid signature"))

        if signature.lower().startswith(SIGNATURE_PREFIX):
            signature = signature[len(SIGNATURE_PREFIX):]
        expected = compute_signature(source.signing_secret.get_secret_value(), raw_body)
        if not hmac.compare_digest(signature.lower().encode("utf-8"), expected.encode("utf-8")):
            return Err(AuthError(AuthErrorKind.INVALID_SIGNATURE, "Invalid signature"))

        return Ok(AuthenticatedSource(name=source.name, client_ip=client_ip, signed=True))
