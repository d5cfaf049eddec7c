"""Shared fixtures: runtime config, in-memory ticket store, wired container, API client."""

from datetime import datetime, timezone

import httpx
import pytest
import pytest_asyncio

from alertbridge.config import Settings
from alertbridge.config.runtime import (
    CMDBConfig, EscalationConfig, RuntimeConfig, StaticConfigProvider,
    TicketsConfig, WebhookConfig, WebhookSource,
)
from alertbridge.container import build_container
from alertbridge.infrastructure.database import (
    close_database, create_tables, get_session_maker, init_database
)
from alertbridge.main import create_app
from alertbridge.tickets.infrastructure import SQLAlchemyTicketStore

SOURCE_NAME = "prometheus"
SOURCE_TOKEN = "prom-token"
SIGNING_SECRET = "prom-secret"
OPERATOR_TOKEN = "operator-token"
CMDB_BASE_URL = "https://cmdb.example.com"


def build_runtime_config(**sections) -> RuntimeConfig:
    """RuntimeConfig with one webhook source; CMDB not configured unless given."""
    defaults = {
        "webhook": WebhookConfig(
            sources=[
                WebhookSource(
                    name=SOURCE_NAME,
                    token=SOURCE_TOKEN,
                    signing_secret=SIGNING_SECRET,
                ),
                WebhookSource(
                    name="strict",
                    token="strict-token",
                    signing_secret="strict-secret",
                    require_signature=True,
                ),
            ]
        ),
        "tickets": TicketsConfig(project_key="ITSM"),
        "cmdb": CMDBConfig(),
        # the in-memory SQLite store shares one connection between sessions
        "escalation": EscalationConfig(max_concurrency=1),
    }
    defaults.update(sections)
    return RuntimeConfig(**defaults)


def configured_cmdb(**overrides) -> CMDBConfig:
    values = {"base_url": CMDB_BASE_URL, "api_token": "cmdb-token", "timeout_ms": 500}
    values.update(overrides)
    return CMDBConfig(**values)


@pytest.fixture
def runtime_config() -> RuntimeConfig:
    return build_runtime_config()


@pytest.fixture
def config_provider(runtime_config) -> StaticConfigProvider:
    return StaticConfigProvider(runtime_config)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        environment="test",
        operator_api_token=OPERATOR_TOKEN,
        escalation_enabled=False,
        database_url="sqlite+aiosqlite:///:memory:",
    )


@pytest_asyncio.fixture
async def session_maker():
    """Fresh in-memory SQLite database per test."""
    init_database("sqlite+aiosqlite:///:memory:")
    await create_tables()
    yield get_session_maker()
    await close_database()


@pytest_asyncio.fixture
async def store(session_maker) -> SQLAlchemyTicketStore:
    return SQLAlchemyTicketStore(session_maker, project_keys=["ITSM"])


@pytest.fixture
def container(settings, config_provider, store):
    return build_container(settings, config_provider, store=store)


@pytest.fixture
def make_runtime_config():
    return build_runtime_config


@pytest.fixture
def make_cmdb_config():
    return configured_cmdb


def _api_client(container) -> httpx.AsyncClient:
    transport = httpx.ASGITransport(app=create_app(container=container))
    return httpx.AsyncClient(transport=transport, base_url="http://testserver")


@pytest_asyncio.fixture
async def client(container):
    """API client bound to the app in-process (same event loop as the store)."""
    async with _api_client(container) as c:
        yield c
    await container.close()


@pytest_asyncio.fixture
async def make_client(settings, store):
    """Factory for API clients over a custom runtime config or CMDB transport."""
    opened = []

    async def _make(config=None, cmdb_transport=None, app_settings=None):
        container = build_container(
            app_settings or settings,
            StaticConfigProvider(config or build_runtime_config()),
            store=store,
            cmdb_transport=cmdb_transport,
        )
        c = _api_client(container)
        opened.append((c, container))
        return c

    yield _make
    for c, container in opened:
        await c.aclose()
        await container.close()


@pytest.fixture
def utc_now() -> datetime:
    return datetime.now(timezone.utc)
