from typing import Optional

from pydantic import BaseModel, Field


class SignatureCheck(BaseModel):
    """Outcome of verifying an embed request's signature."""

    valid: bool = Field(..., description="Whether the request is authentic")
    reason: str = Field(..., description="Why the request was accepted or rejected")
    canonical: Optional[str] = Field(None, description="Payload that was signed")
    received: Optional[str] = Field(None, description="Signature sent by the host")
    expected: Optional[str] = Field(None, description="Signature computed locally")
    agentId: Optional[str] = Field(None, description="Helpdesk agent identifier")
    area: Optional[str] = Field(None, description="Client display name")


class AuthenticatedRequestContext(BaseModel):
    """Identity carried by a verified embed request."""

    agentId: str = Field(..., description="Helpdesk agent identifier")
    area: Optional[str] = Field(None, description="Client display name")
    receivedSignature: str = Field(..., description="Signature sent by the host")
