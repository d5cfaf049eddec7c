"""
CMDB Enrichment Client
======================

httpx client for ``GET {base}/api/assets/{ci_id}``.

Handles:
- Bounded wait: the call runs as a cancellable task under ``asyncio.wait_for``
- Circuit breaker to stop hammering an unhealthy CMDB
- SSRF guard on every URL before any request is made
- Read-through TTL cache keyed by CI id, bounded in size (oldest evicted first)
- Sanitization of every string the CMDB returns

Every failure becomes an EnrichmentOutcome; ``enrich`` never raises.
"""

import asyncio
import socket
import time
from collections import OrderedDict
from typing import Any, Dict, Optional, Tuple
from urllib.parse import quote, urlsplit

import httpx

from alertbridge.config.runtime import CMDBConfig, IConfigProvider
from alertbridge.core import StringSanitizer
from alertbridge.enrichment.application.services import ICMDBClient
from alertbridge.enrichment.domain import (
    CIRecord, EnrichmentOutcome, EnrichmentStatus,
    all_addresses_public, is_valid_cmdb_url,
)
from alertbridge.shared.infrastructure.logging import get_logger, log_latency
from alertbridge.shared.infrastructure.resilience import CircuitBreaker

logger = get_logger(__name__)

USER_AGENT = "alertbridge/1.0"
ASSET_PATH = "/api/assets/"


def build_asset_url(base_url: str, ci_id: str) -> str:
    """Asset URL with the CI id fully percent-encoded as one path segment."""
    return base_url.rstrip("/") + ASSET_PATH + quote(ci_id, safe="")


class CMDBClient(ICMDBClient):
    """
    CMDB HTTP client with timeout, circuit breaker and cache.

    Args:
        config_provider: Source of the current CMDB settings (read per call)
        transport: Optional httpx transport (tests pass a MockTransport)
        circuit_breaker: Optional breaker; one per client by default
    """

    def __init__(
        self,
        config_provider: IConfigProvider,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        circuit_breaker: Optional[CircuitBreaker] = None,
    ):
        self._config_provider = config_provider
        self._transport = transport
        self._circuit_breaker = circuit_breaker or CircuitBreaker(
            "cmdb",
            failure_threshold=5,
            recovery_timeout=30.0
        )
        self._http_client: Optional[httpx.AsyncClient] = None
        self._cache: "OrderedDict[str, Tuple[float, EnrichmentOutcome]]" = OrderedDict()

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                transport=self._transport,
                follow_redirects=False,
            )
        return self._http_client

    async def enrich(self, ci_id: str) -> EnrichmentOutcome:
        config = self._config_provider.get_config().cmdb
        if not config.is_configured:
            logger.warning("CMDB integration not configured")
            return EnrichmentOutcome.failed(EnrichmentStatus.DISABLED)

        ci_id = (ci_id or "").strip()
        if not ci_id:
            return EnrichmentOutcome.failed(EnrichmentStatus.NOT_FOUND, "empty CI id")

        cached = self._cache_get(ci_id, config.cache_ttl_seconds)
        if cached is not None:
            return cached

        url = build_asset_url(config.base_url, ci_id)
        if not is_valid_cmdb_url(url, config.base_url, config.allow_private_hosts):
            logger.error("Rejected CMDB URL", extra={"ci_id": ci_id, "url": url})
            return EnrichmentOutcome.failed(EnrichmentStatus.UNREACHABLE, "CMDB URL rejected")

        if not self._circuit_breaker.allow_request():
            logger.warning("Circuit breaker open, skipping CMDB lookup", extra={"ci_id": ci_id})
            return EnrichmentOutcome.failed(EnrichmentStatus.UNREACHABLE, "circuit open")

        try:
            with log_latency(logger, "cmdb_lookup", ci_id=ci_id):
                outcome = await asyncio.wait_for(
                    self._lookup(url, ci_id, config),
                    timeout=config.timeout_ms / 1000
                )
        except asyncio.TimeoutError:
            self._circuit_breaker.record_failure()
            logger.warning(
                "CMDB call timeout",
                extra={"ci_id": ci_id, "timeout_ms": config.timeout_ms}
            )
            return EnrichmentOutcome.failed(
                EnrichmentStatus.TIMED_OUT,
                f"no response within {config.timeout_ms} ms"
            )

        if outcome.status == EnrichmentStatus.UNREACHABLE:
            self._circuit_breaker.record_failure()
        else:
            self._circuit_breaker.record_success()
            self._cache_put(ci_id, outcome, config)

        return outcome

    async def _lookup(self, url: str, ci_id: str, config: CMDBConfig) -> EnrichmentOutcome:
        """Host resolution check and HTTP fetch, run under one timeout."""
        if config.verify_resolved_addresses and not config.allow_private_hosts:
            if not await self._resolves_to_public(urlsplit(url).hostname):
                logger.error("CMDB host resolves to internal address", extra={"ci_id": ci_id})
                return EnrichmentOutcome.failed(EnrichmentStatus.UNREACHABLE, "CMDB host rejected")
        return await self._fetch(url, ci_id, config)

    async def _fetch(self, url: str, ci_id: str, config: CMDBConfig) -> EnrichmentOutcome:
        client = await self._get_client()
        headers = {
            "Authorization": f"Bearer {config.api_token.get_secret_value()}",
            "Accept": "application/json",
            "User-Agent": USER_AGENT,
        }

        try:
            response = await client.get(url, headers=headers)
        except httpx.HTTPError as e:
            logger.error(
                "HTTP error calling CMDB",
                extra={"ci_id": ci_id, "error": type(e).__name__}
            )
            return EnrichmentOutcome.failed(EnrichmentStatus.UNREACHABLE, type(e).__name__)

        if response.status_code == 404:
            logger.info("CI not found in CMDB", extra={"ci_id": ci_id})
            return EnrichmentOutcome.failed(EnrichmentStatus.NOT_FOUND)

        if response.status_code != 200:
            logger.warning(
                "CMDB API returned unexpected status",
                extra={"ci_id": ci_id, "status_code": response.status_code}
            )
            return EnrichmentOutcome.failed(
                EnrichmentStatus.UNREACHABLE,
                f"CMDB error ({response.status_code})"
            )

        try:
            data = response.json()
        except ValueError:
            logger.error("Invalid JSON response from CMDB", extra={"ci_id": ci_id})
            return EnrichmentOutcome.failed(EnrichmentStatus.UNREACHABLE, "invalid JSON")

        if not isinstance(data, dict):
            logger.error("Unexpected CMDB response shape", extra={"ci_id": ci_id})
            return EnrichmentOutcome.failed(EnrichmentStatus.UNREACHABLE, "invalid JSON")

        return EnrichmentOutcome.found_record(self._to_record(ci_id, data, config))

    @staticmethod
    def _to_record(ci_id: str, data: Dict[str, Any], config: CMDBConfig) -> CIRecord:
        sanitizer = StringSanitizer(max_length=config.max_field_length)

        view_url = data.get("cmdbUrl")
        if not isinstance(view_url, str) or not is_valid_cmdb_url(
            view_url, config.base_url, config.allow_private_hosts
        ):
            view_url = None

        return CIRecord(
            id=ci_id,
            hostname=sanitizer.clean_or_default(data.get("hostname"), ci_id),
            location=sanitizer.clean_or_default(data.get("location"), "unknown"),
            ip_address=sanitizer.clean_or_default(data.get("ip"), ""),
            operating_system=sanitizer.clean_or_default(data.get("os"), ""),
            environment=sanitizer.clean_or_default(data.get("environment"), ""),
            view_url=view_url,
        )

    async def _resolves_to_public(self, host: Optional[str]) -> bool:
        if not host:
            return False
        loop = asyncio.get_running_loop()
        try:
            infos = await loop.getaddrinfo(host, None, type=socket.SOCK_STREAM)
        except OSError as e:
            logger.warning("CMDB host resolution failed", extra={"host": host, "error": str(e)})
            return False
        return all_addresses_public(info[4][0] for info in infos)

    def _cache_get(self, ci_id: str, ttl_seconds: int) -> Optional[EnrichmentOutcome]:
        if ttl_seconds <= 0:
            return None
        entry = self._cache.get(ci_id)
        if entry is None:
            return None
        expires_at, outcome = entry
        if time.monotonic() >= expires_at:
            self._cache.pop(ci_id, None)
            return None
        return outcome

    def _cache_put(self, ci_id: str, outcome: EnrichmentOutcome, config: CMDBConfig) -> None:
        if config.cache_ttl_seconds <= 0:
            return
        now = time.monotonic()
        for key in [key for key, (expires_at, _) in self._cache.items() if expires_at <= now]:
            del self._cache[key]
        self._cache.pop(ci_id, None)
        self._cache[ci_id] = (now + config.cache_ttl_seconds, outcome)
        while len(self._cache) > config.cache_max_entries:
            self._cache.popitem(last=False)

    @property
    def cache_size(self) -> int:
        return len(self._cache)

    def clear_cache(self) -> None:
        self._cache.clear()

    async def close(self) -> None:
        """Close HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None
