from typing import Literal

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse, Response

from finance_widget.domains.embed.dependencies import require_signed_embed
from finance_widget.domains.embed.models import AuthenticatedRequestContext

from .dependencies import get_finance_service
from .rendering import render_csv, render_html
from .service import FinanceService

router = APIRouter(tags=["Finance"])


@router.get(
    "/finance",
    response_class=HTMLResponse,
    operation_id="getFinanceSummary",
)
async def get_finance(
    request: Request,
    area: str = Query(None, description="Client display name in the helpdesk"),
    contact_id: str = Query(
        None, alias="contactId", description="Xero ContactID, skips name lookup"
    ),
    output_format: Literal["html", "json", "csv"] = Query(
        "html", alias="format", description="Rendered output format"
    ),
    context: AuthenticatedRequestContext = Depends(require_signed_embed),
    service: FinanceService = Depends(get_finance_service),
) -> Response:
    """
    Render a client's Xero balance for the helpdesk panel.

    **Authentication**: ``agentId`` and ``hmac`` query parameters signed by
    the helpdesk host

    Returns:
        The finance summary as HTML (default), JSON or CSV

    Raises:
        HTTP 400: If neither area nor contactId is given
        HTTP 401: If the signature is invalid or Xero is not connected
        HTTP 404: If no Xero contact matches the area
        HTTP 500: If Xero calls fail
    """
    summary = await service.get_finance_summary(area=area, record_id=contact_id)

    if output_format == "json":
        return JSONResponse(summary.model_dump(mode="json"))
    if output_format == "csv":
        return PlainTextResponse(render_csv(summary), media_type="text/csv")
    return render_html(request, summary, area or context.area)
