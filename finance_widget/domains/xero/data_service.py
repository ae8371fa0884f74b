import logging
from typing import Any, List, Optional

import httpx

from finance_widget.core.settings import settings
from finance_widget.shared.exceptions import RecordNotFoundError, UpstreamFetchError

from .query import XeroQuery
from .types import (
    XeroContactsResponse,
    XeroCreditNote,
    XeroCreditNotesResponse,
    XeroInvoice,
    XeroInvoicesResponse,
)

logger = logging.getLogger(__name__)

# Xero returns at most this many documents per page
PAGE_SIZE = 100


class XeroDataService:
    """Read-only access to the Xero Accounting API for a single tenant."""

    def __init__(self) -> None:
        self.base_url = "https://api.xero.com/api.xro/2.0"
        self.timeout = settings.HTTP_TIMEOUT_SECONDS

    async def resolve_record(
        self, display_name: str, access_token: str, tenant_id: str
    ) -> str:
        """
        Find the ContactID of the contact named exactly ``display_name``.

        Args:
            display_name: Contact name as shown in the helpdesk
            access_token: Fresh Xero access token
            tenant_id: Tenant to query

        Returns:
            ContactID of the first match

        Raises:
            RecordNotFoundError: If no contact has that name
            UpstreamFetchError: If the lookup fails
        """
        query = XeroQuery().equals("Name", display_name)
        logger.info(f"Looking up Xero contact by name: {display_name}")

        response = await self._make_xero_request(
            f"{self.base_url}/Contacts", access_token, tenant_id, query
        )
        contacts = XeroContactsResponse.model_validate(response).Contacts
        if not contacts:
            logger.warning(f"No contact found for name: {display_name}")
            raise RecordNotFoundError(f"No contact found for name {display_name}")

        contact_id = contacts[0].ContactID
        logger.info(f"Found ContactID {contact_id} for {display_name}")
        return contact_id

    async def get_invoices(
        self, contact_id: str, access_token: str, tenant_id: str
    ) -> List[XeroInvoice]:
        """Non-voided invoices for a contact, newest first."""
        pages = await self._fetch_pages(
            "Invoices", contact_id, access_token, tenant_id
        )
        return [
            invoice
            for page in pages
            for invoice in XeroInvoicesResponse.model_validate(page).Invoices
        ]

    async def get_credit_notes(
        self, contact_id: str, access_token: str, tenant_id: str
    ) -> List[XeroCreditNote]:
        """Non-voided credit notes for a contact, newest first."""
        pages = await self._fetch_pages(
            "CreditNotes", contact_id, access_token, tenant_id
        )
        return [
            credit_note
            for page in pages
            for credit_note in XeroCreditNotesResponse.model_validate(
                page
            ).CreditNotes
        ]

    async def _fetch_pages(
        self, endpoint: str, contact_id: str, access_token: str, tenant_id: str
    ) -> List[dict[str, Any]]:
        """Walk a paged document listing until a short page comes back."""
        pages = []
        page = 1

        while True:
            query = (
                XeroQuery()
                .guid_equals("Contact.ContactID", contact_id)
                .not_equals("Status", "VOIDED")
                .not_equals("Status", "DELETED")
                .order_by("Date", descending=True)
                .page(page)
            )
            response = await self._make_xero_request(
                f"{self.base_url}/{endpoint}", access_token, tenant_id, query
            )
            pages.append(response)

            if len(response.get(endpoint) or []) < PAGE_SIZE:
                break
            page += 1

        return pages

    async def _make_xero_request(
        self,
        url: str,
        access_token: str,
        tenant_id: str,
        query: Optional[XeroQuery] = None,
    ) -> dict[str, Any]:
        """
        Make an authenticated GET against the Xero API.

        Failures are reported once; nothing is retried here.

        Raises:
            UpstreamFetchError: For HTTP or transport failures
        """
        request_headers = {
            "Authorization": f"Bearer {access_token}",
            "Xero-Tenant-Id": tenant_id,
            "Accept": "application/json",
        }
        params = query.to_params() if query else None

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.request(
                    "GET", url, headers=request_headers, params=params
                )
                response.raise_for_status()
                return response.json()
            except httpx.HTTPStatusError as e:
                logger.error(
                    f"Xero API request to {url} failed "
                    f"({e.response.status_code}): {e.response.text}"
                )
                raise UpstreamFetchError(f"Xero API request failed: {e.response.text}")
            except httpx.RequestError as e:
                logger.error(f"Xero API request to {url} errored: {e}")
                raise UpstreamFetchError(f"Xero API request error: {str(e)}")
            except ValueError as e:
                raise UpstreamFetchError(f"Xero API returned invalid JSON: {e}")
