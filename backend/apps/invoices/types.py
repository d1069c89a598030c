"""Invoice data classes for structured return values."""
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from apps.invoices.calculation import InvoiceAmounts

if TYPE_CHECKING:
    from apps.invoices.models import Invoice


@dataclass
class InvoiceRequest:
    """Line-item input for generating (or previewing) one invoice."""

    firm_id: int
    plan_type: str = ""  # Empty means "use the firm's plan"
    duration: str = "12 months"
    num_users: Optional[int] = None
    base_amount: Optional[Decimal] = None
    due_date: Optional[date] = None
    cc_emails: list[str] = field(default_factory=list)


@dataclass
class InvoicePreview:
    """What an invoice would look like, without allocating a number."""

    firm_id: int
    firm_name: str
    invoice_number: str
    plan_type: str
    duration: str
    num_users: int
    base_amount: Decimal
    amounts: InvoiceAmounts
    due_date: date
    due_date_display: str


@dataclass
class RenderedDocument:
    """A rendered invoice document ready for download or attachment."""

    buffer: bytes
    filename: str
    content_type: str

    @property
    def size(self) -> int:
        return len(self.buffer)


@dataclass
class GeneratedInvoice:
    """Result of generating an invoice: the stored record and its document."""

    invoice: "Invoice"
    document: RenderedDocument
    recipients: list[str] = field(default_factory=list)

    @property
    def invoice_number(self) -> str:
        return self.invoice.invoice_number
