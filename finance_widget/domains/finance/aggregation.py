"""
Reduction of a contact's Xero documents into a balance summary.

accountBalance is the sum of invoice balances less the sum of remaining
credit. overdueBalance only counts invoices that are past due and still
have a positive balance; credit notes never contribute to it.
"""

from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional, Sequence

from finance_widget.domains.xero.types import (
    XeroCreditNote,
    XeroDocument,
    XeroInvoice,
    parse_xero_date,
)

from .models import DocumentRow, DocumentType, FinanceSummary

CENTS = Decimal("0.01")


def format_money(amount: Decimal) -> str:
    quantized = amount.quantize(CENTS, rounding=ROUND_HALF_UP)
    if quantized == 0:
        quantized = abs(quantized)
    return str(quantized)


def _date_only(iso_value: Optional[str], raw_value: Optional[str]) -> str:
    if iso_value:
        return iso_value[:10]
    parsed = parse_xero_date(raw_value)
    return parsed.date().isoformat() if parsed else ""


def _to_row(document: XeroDocument, document_type: DocumentType) -> DocumentRow:
    return DocumentRow(
        contact_name=(document.Contact.Name or "") if document.Contact else "",
        document_date=_date_only(document.DateString, document.Date),
        document_type=document_type,
        document_number=document.number or "",
        due_date=_date_only(document.DueDateString, document.DueDate),
        total=format_money(document.Total or Decimal("0")),
        balance=format_money(document.outstanding),
    )


def _open(documents: Iterable[XeroDocument]) -> list[XeroDocument]:
    return [document for document in documents if not document.is_voided]


def summarize_documents(
    invoices: Sequence[XeroInvoice],
    credit_notes: Sequence[XeroCreditNote],
    now: datetime,
) -> FinanceSummary:
    """
    Build a FinanceSummary from already-fetched documents.

    Rows keep the order given: invoices first, then credit notes.

    Args:
        invoices: Invoices for the contact, newest first
        credit_notes: Credit notes for the contact, newest first
        now: Reference time for the overdue test and the as-of stamp; a
            naive value is taken to be UTC like Xero's due dates
    """
    reference = now
    if reference.tzinfo is not None:
        reference = reference.astimezone(timezone.utc).replace(tzinfo=None)

    account_balance = Decimal("0")
    overdue_balance = Decimal("0")
    rows: list[DocumentRow] = []

    for invoice in _open(invoices):
        balance = invoice.outstanding
        account_balance += balance

        due_at = invoice.due_at
        if due_at is not None and due_at < reference and balance > 0:
            overdue_balance += balance

        rows.append(_to_row(invoice, "Invoice"))

    for credit_note in _open(credit_notes):
        account_balance -= credit_note.outstanding
        rows.append(_to_row(credit_note, "CreditNote"))

    return FinanceSummary(
        account_balance=format_money(account_balance),
        overdue_balance=format_money(overdue_balance),
        rows=tuple(rows),
        as_of=now,
    )
