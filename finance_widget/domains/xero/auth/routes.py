# finance_widget/domains/xero/auth/routes.py
import logging

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import PlainTextResponse, RedirectResponse

from finance_widget.shared.exceptions import AuthExchangeError, InvalidRequestError

from .dependencies import get_token_manager
from .models import XeroCallbackParams
from .service import XeroTokenManager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Xero Authorization"])


@router.get("/connect", operation_id="startXeroConnection")
async def start_xero_connection(
    manager: XeroTokenManager = Depends(get_token_manager),
) -> RedirectResponse:
    """
    Redirect the installer to Xero's consent screen.

    Requests the fixed scope set including ``offline_access`` so the grant
    yields a refresh token.
    """
    auth = manager.begin_authorization()
    return RedirectResponse(url=auth.auth_url, status_code=status.HTTP_302_FOUND)


@router.get(
    "/callback",
    response_class=PlainTextResponse,
    operation_id="xeroOAuthCallback",
)
async def xero_oauth_callback(
    code: str = Query(None, description="OAuth authorization code"),
    state: str = Query(None, description="JWT state token"),
    error: str = Query(None, description="OAuth error code"),
    error_description: str = Query(None, description="OAuth error description"),
    manager: XeroTokenManager = Depends(get_token_manager),
) -> str:
    """
    Complete the OAuth flow and persist the resulting credential.

    Returns:
        Plain-text confirmation naming the connected organisation

    Raises:
        HTTP 400: If no authorization code was supplied
        HTTP 500: If the exchange fails or no tenant is available
    """
    callback_params = XeroCallbackParams(
        code=code,
        state=state,
        error=error,
        error_description=error_description,
    )

    if callback_params.error:
        error_desc = callback_params.error_description or callback_params.error
        logger.warning(f"Xero authorization was declined: {error_desc}")
        raise AuthExchangeError(f"OAuth authorization failed: {error_desc}")

    if not callback_params.code:
        raise InvalidRequestError("Missing authorization code")

    connection = await manager.complete_authorization(
        callback_params.code, state=callback_params.state
    )
    return f"Authorised with {connection.tenant_name} - you can close this tab."
