# finance_widget/domains/xero/auth/service.py
import asyncio
import logging
import secrets
from datetime import datetime, timedelta, timezone
from urllib.parse import urlencode

import httpx
import jwt

from finance_widget.core.credentials import Credential, CredentialStore
from finance_widget.core.settings import settings
from finance_widget.shared.exceptions import (
    AuthExchangeError,
    NoTenantError,
    NotAuthorizedError,
    UpstreamFetchError,
)

from .models import (
    XeroAuthUrlResponse,
    XeroConnectionResponse,
    XeroStateTokenPayload,
    XeroTenantInfo,
    XeroTokenResponse,
)

logger = logging.getLogger(__name__)


class XeroTokenManager:
    """
    Owns the delegated Xero credential: the authorization-code exchange,
    refresh-token rotation and tenant selection.

    Every mutation of the credential goes through ``_commit`` so the on-disk
    copy always mirrors the in-memory one. Access tokens are never reused;
    each call to ``ensure_access_token`` performs a refresh exchange.
    """

    def __init__(self, store: CredentialStore):
        self.store = store
        self.client_id = settings.XERO_CLIENT_ID
        self.client_secret = settings.XERO_CLIENT_SECRET
        self.redirect_uri = settings.XERO_REDIRECT_URI
        self.scopes = settings.XERO_SCOPES
        self.tenant_override = settings.TENANT_ID
        self.state_ttl = timedelta(minutes=settings.OAUTH_STATE_TTL_MINUTES)
        self.timeout = settings.HTTP_TIMEOUT_SECONDS

        # Xero OAuth endpoints
        self.auth_url = "https://login.xero.com/identity/connect/authorize"
        self.token_url = "https://identity.xero.com/connect/token"
        self.connections_url = "https://api.xero.com/connections"

        self._credential = Credential()
        self._refresh_task: asyncio.Task[str] | None = None

    @property
    def credential(self) -> Credential:
        """A snapshot of the current credential."""
        return self._credential.model_copy()

    def load_credentials(self) -> Credential:
        """Reload the credential from disk, applying the tenant override."""
        credential = self.store.load()
        if not credential.tenant_id and self.tenant_override:
            credential = credential.model_copy(
                update={"tenant_id": self.tenant_override}
            )
        self._credential = credential
        return self.credential

    def begin_authorization(self) -> XeroAuthUrlResponse:
        """
        Build the redirect to Xero's consent screen.

        Returns:
            XeroAuthUrlResponse with the authorization URL and state expiry

        Raises:
            AuthExchangeError: If the OAuth client is not configured
        """
        if not self.client_id or not self.redirect_uri:
            raise AuthExchangeError("Xero OAuth client is not configured")

        expires_at = datetime.now(timezone.utc) + self.state_ttl
        auth_params = {
            "response_type": "code",
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "scope": self.scopes,
        }
        if self.client_secret:
            auth_params["state"] = self._generate_state_token(expires_at)

        return XeroAuthUrlResponse(
            auth_url=f"{self.auth_url}?{urlencode(auth_params)}",
            expires_at=expires_at,
        )

    async def complete_authorization(
        self, code: str, state: str | None = None
    ) -> XeroConnectionResponse:
        """
        Exchange an authorization code and commit to a tenant.

        Args:
            code: Authorization code from the Xero callback
            state: State token echoed back by Xero, verified when present

        Returns:
            XeroConnectionResponse naming the selected tenant

        Raises:
            AuthExchangeError: If the code is rejected or the state is invalid
            NoTenantError: If the grant covers no usable tenant
        """
        if state is not None:
            self._validate_state_token(state)

        token_response = await self._request_tokens(
            {
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": self.redirect_uri,
            },
            action="Token exchange",
        )
        if not token_response.refresh_token:
            raise AuthExchangeError(
                "Token exchange returned no refresh token (is offline_access "
                "in XERO_SCOPES?)"
            )

        tenant = self._select_tenant(
            await self._get_tenants(token_response.access_token)
        )
        tenant_name = tenant.tenantName or tenant.tenantId

        self._commit(
            Credential(
                access_token=token_response.access_token,
                refresh_token=token_response.refresh_token,
                tenant_id=tenant.tenantId,
                tenant_name=tenant_name,
            )
        )
        logger.info(f"Connected to Xero tenant '{tenant_name}' ({tenant.tenantId})")

        return XeroConnectionResponse(
            tenant_id=tenant.tenantId,
            tenant_name=tenant_name,
            connected_at=datetime.now(timezone.utc),
        )

    async def ensure_access_token(self) -> str:
        """
        Refresh the access token and return the new one.

        Concurrent callers share a single in-flight refresh exchange.

        Raises:
            NotAuthorizedError: If no refresh token is on record
            AuthExchangeError: If Xero rejects the refresh
        """
        if not self._credential.refresh_token:
            raise NotAuthorizedError()

        task = self._refresh_task
        if task is None or task.done():
            task = asyncio.ensure_future(self._refresh_access_token())
            self._refresh_task = task

        return await asyncio.shield(task)

    async def ensure_tenant_id(self, access_token: str) -> str:
        """
        Return the known tenant id, discovering it from Xero if needed.

        Raises:
            NoTenantError: If the grant covers no usable tenant
        """
        if self._credential.tenant_id:
            return self._credential.tenant_id

        tenant = self._select_tenant(await self._get_tenants(access_token))
        self._commit(
            self._credential.model_copy(
                update={
                    "tenant_id": tenant.tenantId,
                    "tenant_name": tenant.tenantName or tenant.tenantId,
                }
            )
        )
        logger.info(f"Resolved Xero tenant {tenant.tenantId}")
        return tenant.tenantId

    async def _refresh_access_token(self) -> str:
        previous_refresh_token = self._credential.refresh_token
        token_response = await self._request_tokens(
            {
                "grant_type": "refresh_token",
                "refresh_token": previous_refresh_token,
            },
            action="Token refresh",
        )

        # Xero rotates refresh tokens; keep the old one if none came back
        self._commit(
            self._credential.model_copy(
                update={
                    "access_token": token_response.access_token,
                    "refresh_token": token_response.refresh_token
                    or previous_refresh_token,
                }
            )
        )
        logger.info("Refreshed Xero access token")
        return token_response.access_token

    async def _request_tokens(
        self, grant: dict[str, str | None], action: str
    ) -> XeroTokenResponse:
        """POST a grant to the Xero token endpoint."""
        token_data = {
            **grant,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
        }

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.post(
                    self.token_url,
                    data=token_data,
                    headers={"Content-Type": "application/x-www-form-urlencoded"},
                )
                response.raise_for_status()
                return XeroTokenResponse.model_validate(response.json())
            except httpx.HTTPStatusError as e:
                logger.error(f"{action} failed: {e.response.text}")
                raise AuthExchangeError(f"{action} failed: {e.response.text}")
            except httpx.RequestError as e:
                logger.error(f"{action} request failed: {e}")
                raise AuthExchangeError(f"{action} request failed: {e}")
            except ValueError as e:
                logger.error(f"{action} returned an unusable body: {e}")
                raise AuthExchangeError(f"{action} returned an invalid response: {e}")

    async def _get_tenants(self, access_token: str) -> list[XeroTenantInfo]:
        """Get the tenants this credential is connected to."""
        headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
        }

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.get(self.connections_url, headers=headers)
                response.raise_for_status()
                return [XeroTenantInfo.model_validate(data) for data in response.json()]
            except httpx.HTTPStatusError as e:
                raise UpstreamFetchError(
                    f"Failed to get tenant info: {e.response.text}"
                )
            except httpx.RequestError as e:
                raise UpstreamFetchError(f"Tenant info request failed: {e}")
            except ValueError as e:
                raise UpstreamFetchError(f"Tenant info response was invalid: {e}")

    def _select_tenant(self, tenants: list[XeroTenantInfo]) -> XeroTenantInfo:
        """Pick the configured tenant, or the first one Xero returns."""
        if not tenants:
            raise NoTenantError()

        if self.tenant_override:
            for tenant in tenants:
                if tenant.tenantId == self.tenant_override:
                    return tenant
            raise NoTenantError(
                f"Configured tenant {self.tenant_override} is not among the "
                "authorised Xero connections"
            )

        if len(tenants) > 1:
            logger.warning(
                f"{len(tenants)} Xero tenants authorised; using the first "
                f"({tenants[0].tenantName}). Set TENANT_ID to choose another."
            )
        return tenants[0]

    def _commit(self, credential: Credential) -> None:
        self._credential = credential
        self.store.save(credential)

    def _generate_state_token(self, expires_at: datetime) -> str:
        """Generate JWT state token for OAuth flow."""
        payload = XeroStateTokenPayload(
            csrf_token=secrets.token_urlsafe(32),
            issued_at=datetime.now(timezone.utc),
            expires_at=expires_at,
        )

        return jwt.encode(
            payload.model_dump(mode="json"),
            self.client_secret,
            algorithm="HS256",
        )

    def _validate_state_token(self, token: str) -> XeroStateTokenPayload:
        """Validate and decode JWT state token."""
        if not self.client_secret:
            raise AuthExchangeError("OAuth state cannot be verified")

        try:
            payload = jwt.decode(token, self.client_secret, algorithms=["HS256"])
        except jwt.InvalidTokenError as e:
            raise AuthExchangeError(f"Invalid OAuth state token: {e}")

        state_payload = XeroStateTokenPayload(**payload)
        if datetime.now(timezone.utc) > state_payload.expires_at:
            raise AuthExchangeError("OAuth session expired")
        return state_payload
