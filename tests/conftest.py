"""Shared test fixtures: settings and a fake aiohttp session."""

from dataclasses import replace

import pytest

from mcp_ckan_server.client import CKANAPIClient
from mcp_ckan_server.config import Settings
from tests.helpers import BASE_URL, FakeSession


@pytest.fixture()
def settings() -> Settings:
    return Settings(base_url=BASE_URL, timeout=15.0, user_agent="ckan-mcp-server/test",
                    max_rows=1000, default_rows=25)


@pytest.fixture()
def sql_settings(settings: Settings) -> Settings:
    return replace(settings, enable_sql=True)


@pytest.fixture()
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture()
def client(settings: Settings, session: FakeSession) -> CKANAPIClient:
    return CKANAPIClient(settings, session=session)


@pytest.fixture()
def sql_client(sql_settings: Settings, session: FakeSession) -> CKANAPIClient:
    return CKANAPIClient(sql_settings, session=session)
