# finance_widget/domains/xero/auth/models.py
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class XeroAuthUrlResponse(BaseModel):
    """Authorization redirect target."""

    auth_url: str = Field(..., description="Xero OAuth authorization URL")
    expires_at: datetime = Field(..., description="When the state token expires")


class XeroCallbackParams(BaseModel):
    """Query parameters from Xero OAuth callback."""

    code: Optional[str] = Field(None, description="OAuth authorization code")
    state: Optional[str] = Field(None, description="JWT state token")
    error: Optional[str] = Field(None, description="Error code if authorization failed")
    error_description: Optional[str] = Field(None, description="Error description")


class XeroTokenResponse(BaseModel):
    """Response from Xero token endpoint."""

    model_config = ConfigDict(extra="ignore")

    access_token: str = Field(..., description="Access token for API calls")
    refresh_token: Optional[str] = Field(
        None, description="Refresh token for token renewal"
    )
    expires_in: Optional[int] = Field(None, description="Token lifetime in seconds")
    token_type: str = Field(default="Bearer", description="Token type")
    scope: Optional[str] = Field(None, description="Granted scopes")


class XeroTenantInfo(BaseModel):
    """Information about a Xero tenant from connections endpoint."""

    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = Field(None, description="Connection UUID")
    tenantId: str = Field(..., description="Xero tenant ID")
    tenantName: Optional[str] = Field(None, description="Organization name in Xero")
    tenantType: Optional[str] = Field(
        None, description="Tenant type (ORGANISATION, PRACTICE)"
    )


class XeroStateTokenPayload(BaseModel):
    """JWT payload for OAuth state token."""

    csrf_token: str = Field(..., description="CSRF protection token")
    issued_at: datetime = Field(..., description="Token issue time")
    expires_at: datetime = Field(..., description="Token expiry time")


class XeroConnectionResponse(BaseModel):
    """Outcome of a completed authorization."""

    tenant_id: str = Field(..., description="Selected Xero tenant ID")
    tenant_name: str = Field(..., description="Connected Xero organization name")
    connected_at: datetime = Field(..., description="When connection was established")
