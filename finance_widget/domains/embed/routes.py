from fastapi import APIRouter, Request

from finance_widget.core.settings import settings

from .models import SignatureCheck
from .service import authenticate

router = APIRouter(tags=["Embed Debugging"])


@router.get(
    "/debug-hmac",
    response_model=SignatureCheck,
    operation_id="debugEmbedSignature",
)
async def debug_hmac(request: Request) -> SignatureCheck:
    """
    Report how the authenticator judged the supplied query parameters.

    Echoes the expected signature, so it must not be reachable without access
    control in production. Mounted only while ENABLE_DEBUG_HMAC is true.
    """
    return authenticate(request.query_params, settings.HALO_WIDGET_SECRET, debug=True)
