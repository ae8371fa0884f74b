import logging
from datetime import datetime, timezone
from typing import Optional

from finance_widget.domains.xero.auth.service import XeroTokenManager
from finance_widget.domains.xero.data_service import XeroDataService
from finance_widget.domains.xero.query import normalize_guid
from finance_widget.shared.cache import ResultCache
from finance_widget.shared.exceptions import InvalidRequestError

from .aggregation import summarize_documents
from .models import FinanceSummary

logger = logging.getLogger(__name__)


class FinanceService:
    """Service answering "what does this client owe" for the embed panel."""

    def __init__(
        self,
        token_manager: XeroTokenManager,
        cache: ResultCache[FinanceSummary],
        data_service: Optional[XeroDataService] = None,
    ):
        self.token_manager = token_manager
        self.cache = cache
        self.data_service = data_service or XeroDataService()

    async def get_finance_summary(
        self, area: Optional[str] = None, record_id: Optional[str] = None
    ) -> FinanceSummary:
        """
        Return the balance summary for a contact, served from cache if fresh.

        An explicit ``record_id`` skips the name lookup and is itself the
        cache key; otherwise the display name is.

        Args:
            area: Contact display name
            record_id: Xero ContactID

        Returns:
            FinanceSummary for the contact

        Raises:
            InvalidRequestError: If neither input is usable
            NotAuthorizedError: If Xero has not been connected yet
            RecordNotFoundError: If the name matches no contact
            UpstreamFetchError: If Xero calls fail
        """
        if record_id:
            try:
                record_id = normalize_guid(record_id)
            except ValueError:
                raise InvalidRequestError(f"contactId {record_id!r} is not a GUID")
        elif not area:
            raise InvalidRequestError("Missing contactId or area")

        cache_key = record_id or area or ""
        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.info(f"Using cached data for {cache_key}")
            return cached
        logger.info(f"No fresh cached data for {cache_key}, querying Xero")

        access_token = await self.token_manager.ensure_access_token()
        tenant_id = await self.token_manager.ensure_tenant_id(access_token)

        if not record_id:
            record_id = await self.data_service.resolve_record(
                cache_key, access_token, tenant_id
            )

        summary = await self.build_summary(record_id, access_token, tenant_id)
        self.cache.put(cache_key, summary)
        return summary

    async def build_summary(
        self,
        record_id: str,
        access_token: str,
        tenant_id: str,
        now: Optional[datetime] = None,
    ) -> FinanceSummary:
        """
        Fetch a contact's open invoices and credit notes and reduce them.

        Raises:
            UpstreamFetchError: If either listing fails
        """
        invoices = await self.data_service.get_invoices(
            record_id, access_token, tenant_id
        )
        credit_notes = await self.data_service.get_credit_notes(
            record_id, access_token, tenant_id
        )

        # Xero due dates are compared in UTC
        reference = now or datetime.now(timezone.utc)
        summary = summarize_documents(invoices, credit_notes, reference)
        logger.info(
            f"Built summary for {record_id}: {len(summary.rows)} documents, "
            f"balance {summary.account_balance}, overdue {summary.overdue_balance}"
        )
        return summary
