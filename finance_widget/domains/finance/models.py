from datetime import datetime
from typing import Literal, Tuple

from pydantic import BaseModel, ConfigDict, Field

DocumentType = Literal["Invoice", "CreditNote"]


class DocumentRow(BaseModel):
    """One outstanding document as shown in the panel."""

    model_config = ConfigDict(frozen=True)

    contact_name: str = Field(..., description="Contact the document belongs to")
    document_date: str = Field(..., description="Document date (YYYY-MM-DD)")
    document_type: DocumentType = Field(..., description="Invoice or CreditNote")
    document_number: str = Field(..., description="Invoice or credit note number")
    due_date: str = Field(..., description="Due date (YYYY-MM-DD), blank if none")
    total: str = Field(..., description="Document total, two decimals")
    balance: str = Field(..., description="Outstanding amount, two decimals")


class FinanceSummary(BaseModel):
    """Aggregated balance for one Xero contact."""

    model_config = ConfigDict(frozen=True)

    account_balance: str = Field(
        ..., description="Invoice balances less unallocated credit"
    )
    overdue_balance: str = Field(
        ..., description="Balance of invoices past their due date"
    )
    rows: Tuple[DocumentRow, ...] = Field(default_factory=tuple)
    as_of: datetime = Field(..., description="When the summary was computed")

    @property
    def as_of_display(self) -> str:
        local = self.as_of.astimezone()
        return local.strftime("%d/%m/%Y, %I:%M:%S %p").lower()
