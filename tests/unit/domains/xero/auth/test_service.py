# tests/unit/domains/xero/auth/test_service.py
"""
Tests for XeroTokenManager authorization and refresh handling.
"""
import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import Mock, patch
from urllib.parse import parse_qs, urlparse

import jwt
import pytest

from finance_widget.core.credentials import Credential, CredentialStore
from finance_widget.domains.xero.auth.service import XeroTokenManager
from finance_widget.shared.exceptions import (
    AuthExchangeError,
    NoTenantError,
    NotAuthorizedError,
    UpstreamFetchError,
)
from tests.fixtures.xero_fixtures import TENANT_ID, FakeXeroApi


class TestBeginAuthorization:
    """Test suite for building the consent redirect."""

    def test_auth_url_carries_client_and_scopes(
        self, token_manager: XeroTokenManager
    ) -> None:
        """Test the redirect target and its query parameters."""
        result = token_manager.begin_authorization()

        parsed = urlparse(result.auth_url)
        query = parse_qs(parsed.query)
        assert parsed.netloc == "login.xero.com"
        assert parsed.path == "/identity/connect/authorize"
        assert query["response_type"] == ["code"]
        assert query["client_id"] == ["test-client-id"]
        assert query["redirect_uri"] == ["https://widget.example.com/auth/callback"]
        assert query["scope"] == [
            "accounting.transactions accounting.contacts offline_access"
        ]
        assert "state" in query
        assert result.expires_at > datetime.now(timezone.utc)

    def test_begin_has_no_side_effects(
        self, token_manager: XeroTokenManager, credential_store: CredentialStore
    ) -> None:
        """Test nothing is persisted when only a URL is built."""
        token_manager.begin_authorization()

        assert not credential_store.path.exists()
        assert token_manager.credential == Credential()

    def test_unconfigured_client(
        self, credential_store: CredentialStore, mock_settings: Mock
    ) -> None:
        mock_settings.XERO_CLIENT_ID = None
        with patch("finance_widget.domains.xero.auth.service.settings", mock_settings):
            manager = XeroTokenManager(credential_store)

        with pytest.raises(AuthExchangeError) as exc_info:
            manager.begin_authorization()

        assert "not configured" in str(exc_info.value)


class TestCompleteAuthorization:
    """Test suite for the authorization-code exchange."""

    @pytest.mark.asyncio
    async def test_success_persists_credential(
        self,
        token_manager: XeroTokenManager,
        credential_store: CredentialStore,
        xero_api: FakeXeroApi,
    ) -> None:
        """Test a valid code yields a stored credential for the first tenant."""
        result = await token_manager.complete_authorization("test-auth-code")

        assert result.tenant_name == "Test Organisation"
        assert result.tenant_id == TENANT_ID

        stored = credential_store.load()
        assert stored.access_token == "access-1"
        assert stored.refresh_token == "refresh-1"
        assert stored.tenant_id == TENANT_ID
        assert stored.tenant_name == "Test Organisation"
        assert token_manager.credential == stored

    @pytest.mark.asyncio
    async def test_rejected_code(
        self,
        token_manager: XeroTokenManager,
        credential_store: CredentialStore,
        xero_api: FakeXeroApi,
    ) -> None:
        """Test the upstream rejecting the code raises AuthExchangeError."""
        with pytest.raises(AuthExchangeError) as exc_info:
            await token_manager.complete_authorization("wrong-code")

        assert "invalid_grant" in str(exc_info.value)
        assert not credential_store.path.exists()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body", ["<html>maintenance</html>", {"token_type": "Bearer"}, ["access"]]
    )
    async def test_unusable_token_body(
        self,
        token_manager: XeroTokenManager,
        credential_store: CredentialStore,
        xero_api: FakeXeroApi,
        body,
    ) -> None:
        """Test a 200 without a usable token payload raises AuthExchangeError."""
        xero_api.bodies["/connect/token"] = body

        with pytest.raises(AuthExchangeError) as exc_info:
            await token_manager.complete_authorization("test-auth-code")

        assert "Token exchange returned an invalid response" in str(exc_info.value)
        assert not credential_store.path.exists()

    @pytest.mark.asyncio
    async def test_no_tenants(
        self,
        token_manager: XeroTokenManager,
        credential_store: CredentialStore,
        xero_api: FakeXeroApi,
    ) -> None:
        xero_api.tenants = []

        with pytest.raises(NoTenantError):
            await token_manager.complete_authorization("test-auth-code")

        assert not credential_store.path.exists()

    @pytest.mark.asyncio
    async def test_first_tenant_is_selected(
        self, token_manager: XeroTokenManager, xero_api: FakeXeroApi
    ) -> None:
        xero_api.tenants.append(
            {"tenantId": "second-tenant", "tenantName": "Second Organisation"}
        )

        result = await token_manager.complete_authorization("test-auth-code")

        assert result.tenant_id == TENANT_ID

    @pytest.mark.asyncio
    async def test_configured_tenant_is_selected(
        self,
        credential_store: CredentialStore,
        mock_settings: Mock,
        xero_api: FakeXeroApi,
    ) -> None:
        """Test TENANT_ID picks a tenant other than the first."""
        xero_api.tenants.append(
            {"tenantId": "second-tenant", "tenantName": "Second Organisation"}
        )
        mock_settings.TENANT_ID = "second-tenant"
        with patch("finance_widget.domains.xero.auth.service.settings", mock_settings):
            manager = XeroTokenManager(credential_store)

        result = await manager.complete_authorization("test-auth-code")

        assert result.tenant_name == "Second Organisation"
        assert credential_store.load().tenant_id == "second-tenant"

    @pytest.mark.asyncio
    async def test_configured_tenant_not_connected(
        self,
        credential_store: CredentialStore,
        mock_settings: Mock,
        xero_api: FakeXeroApi,
    ) -> None:
        mock_settings.TENANT_ID = "missing-tenant"
        with patch("finance_widget.domains.xero.auth.service.settings", mock_settings):
            manager = XeroTokenManager(credential_store)

        with pytest.raises(NoTenantError) as exc_info:
            await manager.complete_authorization("test-auth-code")

        assert "missing-tenant" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_missing_refresh_token(
        self, token_manager: XeroTokenManager, xero_api: FakeXeroApi
    ) -> None:
        """Test a grant without offline_access is refused."""
        xero_api.issue_refresh_tokens = False

        with pytest.raises(AuthExchangeError) as exc_info:
            await token_manager.complete_authorization("test-auth-code")

        assert "offline_access" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_valid_state_round_trip(
        self, token_manager: XeroTokenManager, xero_api: FakeXeroApi
    ) -> None:
        """Test the state issued by begin_authorization is accepted."""
        auth = token_manager.begin_authorization()
        state = parse_qs(urlparse(auth.auth_url).query)["state"][0]

        result = await token_manager.complete_authorization(
            "test-auth-code", state=state
        )

        assert result.tenant_id == TENANT_ID

    @pytest.mark.asyncio
    async def test_tampered_state(
        self, token_manager: XeroTokenManager, xero_api: FakeXeroApi
    ) -> None:
        forged = jwt.encode(
            {"csrf_token": "x"},
            "another-secret-that-is-long-enough-for-hs256",
            algorithm="HS256",
        )

        with pytest.raises(AuthExchangeError) as exc_info:
            await token_manager.complete_authorization("test-auth-code", state=forged)

        assert "Invalid OAuth state token" in str(exc_info.value)
        assert xero_api.requests == []

    @pytest.mark.asyncio
    async def test_expired_state(
        self, token_manager: XeroTokenManager, xero_api: FakeXeroApi
    ) -> None:
        issued = datetime.now(timezone.utc) - timedelta(hours=1)
        with patch(
            "finance_widget.domains.xero.auth.service.datetime"
        ) as mock_datetime:
            mock_datetime.now.return_value = issued
            auth = token_manager.begin_authorization()
        state = parse_qs(urlparse(auth.auth_url).query)["state"][0]

        with pytest.raises(AuthExchangeError) as exc_info:
            await token_manager.complete_authorization("test-auth-code", state=state)

        assert "expired" in str(exc_info.value)


class TestEnsureAccessToken:
    """Test suite for unconditional refresh."""

    @pytest.mark.asyncio
    async def test_not_authorized(self, token_manager: XeroTokenManager) -> None:
        """Test that refreshing before any authorization fails."""
        with pytest.raises(NotAuthorizedError):
            await token_manager.ensure_access_token()

    @pytest.mark.asyncio
    async def test_every_call_refreshes(
        self, authorized_manager: XeroTokenManager, xero_api: FakeXeroApi
    ) -> None:
        """Test that consecutive calls never return the same access token."""
        tokens = [await authorized_manager.ensure_access_token() for _ in range(4)]

        assert tokens == ["access-1", "access-2", "access-3", "access-4"]
        for previous, current in zip(tokens, tokens[1:]):
            assert previous != current
        assert len(xero_api.requests_to("/connect/token")) == 4

    @pytest.mark.asyncio
    async def test_refresh_persists_and_keeps_tenant(
        self,
        authorized_manager: XeroTokenManager,
        credential_store: CredentialStore,
        xero_api: FakeXeroApi,
    ) -> None:
        access_token = await authorized_manager.ensure_access_token()

        stored = credential_store.load()
        assert stored.access_token == access_token
        assert stored.refresh_token == "refresh-1"
        assert stored.tenant_id == TENANT_ID
        assert stored.tenant_name == "Test Organisation"

    @pytest.mark.asyncio
    async def test_refresh_without_new_refresh_token_keeps_old(
        self,
        authorized_manager: XeroTokenManager,
        credential_store: CredentialStore,
        xero_api: FakeXeroApi,
    ) -> None:
        xero_api.issue_refresh_tokens = False

        await authorized_manager.ensure_access_token()

        assert credential_store.load().refresh_token == "seed-refresh"

    @pytest.mark.asyncio
    async def test_revoked_refresh_token(
        self,
        authorized_manager: XeroTokenManager,
        credential_store: CredentialStore,
        xero_api: FakeXeroApi,
    ) -> None:
        """Test a rejected refresh surfaces and leaves the credential intact."""
        xero_api.seed_refresh_token("someone-else")

        with pytest.raises(AuthExchangeError) as exc_info:
            await authorized_manager.ensure_access_token()

        assert "Token refresh failed" in str(exc_info.value)
        assert credential_store.load().refresh_token == "seed-refresh"

    @pytest.mark.asyncio
    async def test_refresh_with_unusable_body(
        self,
        authorized_manager: XeroTokenManager,
        credential_store: CredentialStore,
        xero_api: FakeXeroApi,
    ) -> None:
        xero_api.bodies["/connect/token"] = "not json"

        with pytest.raises(AuthExchangeError):
            await authorized_manager.ensure_access_token()

        assert credential_store.load().refresh_token == "seed-refresh"

    @pytest.mark.asyncio
    async def test_concurrent_calls_share_one_refresh(
        self, authorized_manager: XeroTokenManager, xero_api: FakeXeroApi
    ) -> None:
        first, second = await asyncio.gather(
            authorized_manager.ensure_access_token(),
            authorized_manager.ensure_access_token(),
        )

        assert first == second == "access-1"
        assert len(xero_api.requests_to("/connect/token")) == 1

    @pytest.mark.asyncio
    async def test_survives_restart(
        self,
        authorized_manager: XeroTokenManager,
        credential_store: CredentialStore,
        mock_settings: Mock,
        xero_api: FakeXeroApi,
    ) -> None:
        """Test a new manager picks up the rotated refresh token from disk."""
        await authorized_manager.ensure_access_token()

        with patch("finance_widget.domains.xero.auth.service.settings", mock_settings):
            restarted = XeroTokenManager(credential_store)
        restarted.load_credentials()

        assert await restarted.ensure_access_token() == "access-2"


class TestEnsureTenantId:
    """Test suite for tenant discovery."""

    @pytest.mark.asyncio
    async def test_known_tenant_skips_lookup(
        self, authorized_manager: XeroTokenManager, xero_api: FakeXeroApi
    ) -> None:
        access_token = await authorized_manager.ensure_access_token()

        tenant_id = await authorized_manager.ensure_tenant_id(access_token)

        assert tenant_id == TENANT_ID
        assert xero_api.requests_to("/connections") == []

    @pytest.mark.asyncio
    async def test_unknown_tenant_is_discovered(
        self,
        token_manager: XeroTokenManager,
        credential_store: CredentialStore,
        xero_api: FakeXeroApi,
    ) -> None:
        credential_store.save(Credential(refresh_token="seed-refresh"))
        xero_api.seed_refresh_token("seed-refresh")
        token_manager.load_credentials()
        access_token = await token_manager.ensure_access_token()

        tenant_id = await token_manager.ensure_tenant_id(access_token)

        assert tenant_id == TENANT_ID
        assert credential_store.load().tenant_id == TENANT_ID
        assert len(xero_api.requests_to("/connections")) == 1

    @pytest.mark.asyncio
    async def test_no_tenant(
        self,
        token_manager: XeroTokenManager,
        credential_store: CredentialStore,
        xero_api: FakeXeroApi,
    ) -> None:
        credential_store.save(Credential(refresh_token="seed-refresh"))
        xero_api.seed_refresh_token("seed-refresh")
        xero_api.tenants = []
        token_manager.load_credentials()
        access_token = await token_manager.ensure_access_token()

        with pytest.raises(NoTenantError):
            await token_manager.ensure_tenant_id(access_token)

    @pytest.mark.asyncio
    async def test_connections_failure(
        self,
        token_manager: XeroTokenManager,
        credential_store: CredentialStore,
        xero_api: FakeXeroApi,
    ) -> None:
        credential_store.save(Credential(refresh_token="seed-refresh"))
        xero_api.seed_refresh_token("seed-refresh")
        xero_api.failures["/connections"] = 503
        token_manager.load_credentials()
        access_token = await token_manager.ensure_access_token()

        with pytest.raises(UpstreamFetchError):
            await token_manager.ensure_tenant_id(access_token)

    @pytest.mark.asyncio
    async def test_unusable_connections_body(
        self,
        token_manager: XeroTokenManager,
        credential_store: CredentialStore,
        xero_api: FakeXeroApi,
    ) -> None:
        credential_store.save(Credential(refresh_token="seed-refresh"))
        xero_api.seed_refresh_token("seed-refresh")
        xero_api.bodies["/connections"] = [{"tenantName": "No id"}]
        token_manager.load_credentials()
        access_token = await token_manager.ensure_access_token()

        with pytest.raises(UpstreamFetchError) as exc_info:
            await token_manager.ensure_tenant_id(access_token)

        assert "Tenant info response was invalid" in str(exc_info.value)

    def test_load_applies_tenant_override(
        self,
        credential_store: CredentialStore,
        mock_settings: Mock,
    ) -> None:
        credential_store.save(Credential(refresh_token="r"))
        mock_settings.TENANT_ID = "override-tenant"
        with patch("finance_widget.domains.xero.auth.service.settings", mock_settings):
            manager = XeroTokenManager(credential_store)

        credential = manager.load_credentials()

        assert credential.tenant_id == "override-tenant"
