"""Xero API type definitions for the documents the finance panel reads."""

import re
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

# Xero's JSON date form, e.g. /Date(1706745600000+0000)/
_MS_DATE_PATTERN = re.compile(r"/Date\((-?\d+)([+-]\d{4})?\)/")

VOIDED_STATUSES = frozenset({"VOIDED", "DELETED"})


def parse_xero_date(value: Optional[str]) -> Optional[datetime]:
    """Parse either Xero date representation into a naive UTC datetime."""
    if not value:
        return None

    match = _MS_DATE_PATTERN.fullmatch(value.strip())
    if match:
        millis = int(match.group(1))
        return datetime.fromtimestamp(millis / 1000, tz=timezone.utc).replace(
            tzinfo=None
        )

    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


class XeroContactRef(BaseModel):
    """Contact summary embedded in documents and contact lookups."""

    model_config = ConfigDict(extra="ignore")

    ContactID: str = Field(..., description="Xero contact identifier")
    Name: Optional[str] = Field(None, description="Contact name")
    ContactStatus: Optional[str] = Field(None, description="Contact status in Xero")


class XeroDocument(BaseModel, ABC):
    """Fields shared by invoices and credit notes."""

    model_config = ConfigDict(extra="ignore")

    Type: Optional[str] = Field(None, description="ACCREC/ACCPAY or credit note type")
    Contact: Optional[XeroContactRef] = Field(None, description="Document contact")
    Date: Optional[str] = Field(None, description="Document date in Xero format")
    DateString: Optional[str] = Field(None, description="Document date, ISO form")
    DueDate: Optional[str] = Field(None, description="Due date in Xero format")
    DueDateString: Optional[str] = Field(None, description="Due date, ISO form")
    Status: Optional[str] = Field(None, description="Document status")
    Total: Optional[Decimal] = Field(None, description="Total including tax")
    CurrencyCode: Optional[str] = Field(None, description="Currency code")

    @property
    def is_voided(self) -> bool:
        return (self.Status or "").upper() in VOIDED_STATUSES

    @property
    def due_at(self) -> Optional[datetime]:
        return parse_xero_date(self.DueDateString) or parse_xero_date(self.DueDate)

    @property
    @abstractmethod
    def outstanding(self) -> Decimal:
        """Amount still open on the document."""

    @property
    @abstractmethod
    def number(self) -> Optional[str]:
        """Document number as shown to the client."""


class XeroInvoice(XeroDocument):
    """Xero invoice structure."""

    InvoiceID: str = Field(..., description="Xero invoice identifier")
    InvoiceNumber: Optional[str] = Field(None, description="Invoice number")
    AmountDue: Optional[Decimal] = Field(None, description="Amount still due")
    AmountPaid: Optional[Decimal] = Field(None, description="Amount already paid")

    @property
    def outstanding(self) -> Decimal:
        return self.AmountDue if self.AmountDue is not None else Decimal("0")

    @property
    def number(self) -> Optional[str]:
        return self.InvoiceNumber


class XeroCreditNote(XeroDocument):
    """Xero credit note structure."""

    CreditNoteID: str = Field(..., description="Xero credit note identifier")
    CreditNoteNumber: Optional[str] = Field(None, description="Credit note number")
    RemainingCredit: Optional[Decimal] = Field(
        None, description="Credit not yet allocated"
    )

    @property
    def outstanding(self) -> Decimal:
        if self.RemainingCredit is not None:
            return self.RemainingCredit
        return Decimal("0")

    @property
    def number(self) -> Optional[str]:
        return self.CreditNoteNumber


class XeroContactsResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    Contacts: List[XeroContactRef] = Field(default_factory=list)


class XeroInvoicesResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    Invoices: List[XeroInvoice] = Field(default_factory=list)


class XeroCreditNotesResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    CreditNotes: List[XeroCreditNote] = Field(default_factory=list)
