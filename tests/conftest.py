"""
Global pytest configuration and fixtures for the finance widget test suite.
"""

from pathlib import Path
from typing import Iterator
from unittest.mock import Mock, patch

import pytest
from fastapi.testclient import TestClient

from finance_widget.core.credentials import Credential, CredentialStore
from finance_widget.core.settings import settings
from finance_widget.domains.embed.service import sign
from finance_widget.domains.finance.dependencies import get_result_cache
from finance_widget.domains.finance.models import FinanceSummary
from finance_widget.domains.xero.auth.dependencies import get_token_manager
from finance_widget.domains.xero.auth.service import XeroTokenManager
from finance_widget.main import app
from finance_widget.shared.cache import ResultCache

# Import fixtures from fixture modules
from tests.fixtures.xero_fixtures import *  # noqa: F403, F401
from tests.fixtures.xero_fixtures import TENANT_ID

TEST_WIDGET_SECRET = "test-widget-secret-for-testing-only"


@pytest.fixture
def credential_path(tmp_path: Path) -> Path:
    return tmp_path / "tokens.json"


@pytest.fixture
def credential_store(credential_path: Path) -> CredentialStore:
    return CredentialStore(credential_path)


@pytest.fixture
def token_manager(
    credential_store: CredentialStore, mock_settings: Mock
) -> XeroTokenManager:
    """XeroTokenManager with test OAuth configuration and no stored credential."""
    with patch("finance_widget.domains.xero.auth.service.settings", mock_settings):
        return XeroTokenManager(credential_store)


@pytest.fixture
def authorized_manager(
    token_manager: XeroTokenManager,
    credential_store: CredentialStore,
    xero_api,
) -> XeroTokenManager:
    """Token manager holding a stored credential the fake Xero accepts."""
    credential_store.save(
        Credential(
            access_token="stale-access",
            refresh_token="seed-refresh",
            tenant_id=TENANT_ID,
            tenant_name="Test Organisation",
        )
    )
    xero_api.seed_refresh_token("seed-refresh")
    token_manager.load_credentials()
    return token_manager


@pytest.fixture
def result_cache() -> ResultCache[FinanceSummary]:
    return ResultCache(120)


@pytest.fixture
def widget_secret(monkeypatch: pytest.MonkeyPatch) -> str:
    monkeypatch.setattr(settings, "HALO_WIDGET_SECRET", TEST_WIDGET_SECRET)
    return TEST_WIDGET_SECRET


@pytest.fixture
def signed_params(widget_secret: str) -> dict[str, str]:
    """Query parameters as the helpdesk host would send them."""
    agent_id = "42"
    return {"agentId": agent_id, "hmac": sign(agent_id, widget_secret)}


@pytest.fixture
def client(
    authorized_manager: XeroTokenManager,
    result_cache: ResultCache[FinanceSummary],
    widget_secret: str,
) -> Iterator[TestClient]:
    """FastAPI test client wired to the fake Xero and a fresh cache."""
    app.dependency_overrides[get_token_manager] = lambda: authorized_manager
    app.dependency_overrides[get_result_cache] = lambda: result_cache
    yield TestClient(app)
    app.dependency_overrides.clear()
