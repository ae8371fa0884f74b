import logging

from fastapi import Request

from finance_widget.core.settings import settings
from finance_widget.shared.exceptions import InvalidSignatureError

from .models import AuthenticatedRequestContext
from .service import authenticate

logger = logging.getLogger(__name__)


def require_signed_embed(request: Request) -> AuthenticatedRequestContext:
    """
    Verifies the host's HMAC over ``agentId`` before any data is served.
    """
    check = authenticate(request.query_params, settings.HALO_WIDGET_SECRET)
    if not check.valid:
        logger.warning(
            f"Rejected embed request for agent {check.agentId!r}: {check.reason}"
        )
        raise InvalidSignatureError(f"Invalid or missing signature: {check.reason}")

    return AuthenticatedRequestContext(
        agentId=check.agentId or "",
        area=check.area,
        receivedSignature=check.received or "",
    )
