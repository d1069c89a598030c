"""Persistence used by the scheduled invoice processor."""
from abc import ABC, abstractmethod
from datetime import date, datetime

from django.db import transaction
from django.utils import timezone

from apps.firms.models import Firm
from apps.invoices.exceptions import InvalidState
from apps.invoices.models import Invoice
from apps.invoices.numbering import InvoiceNumberService
from apps.invoices.services import create_invoice_record
from apps.scheduling.models import ScheduledInvoice


class InvoiceStore(ABC):
    """What the processor needs from persistence."""

    @abstractmethod
    def list_due_pending(self, as_of: date) -> list[ScheduledInvoice]:
        """Pending entries with schedule_date <= as_of, by date then id."""

    @abstractmethod
    def get_entry(self, scheduled_id) -> ScheduledInvoice | None:
        ...

    @abstractmethod
    def claim_pending(self, scheduled_id) -> ScheduledInvoice | None:
        """Lock a pending entry for the current transaction.

        Returns None when the entry has left pending or another run holds it.
        """

    @abstractmethod
    def set_entry_status(
        self,
        scheduled_id,
        status: str,
        executed_at: datetime | None = None,
        error: str = "",
        invoice: Invoice | None = None,
    ) -> None:
        """Move a pending entry to a terminal status.

        Raises InvalidState when the entry is no longer pending.
        """

    @abstractmethod
    def allocate_next_invoice_number(self, year: int) -> str:
        ...

    @abstractmethod
    def create_invoice_record(self, fields: dict) -> Invoice:
        ...

    @abstractmethod
    def get_firm(self, firm_id) -> Firm | None:
        ...

    @abstractmethod
    def atomic(self):
        """Context manager scoping one entry's writes."""


class DjangoInvoiceStore(InvoiceStore):
    """InvoiceStore backed by the Django ORM."""

    def __init__(self, numbering: InvoiceNumberService | None = None):
        self.numbering = numbering or InvoiceNumberService()

    def list_due_pending(self, as_of):
        return list(
            ScheduledInvoice.objects
            .filter(status=ScheduledInvoice.Status.PENDING, schedule_date__lte=as_of)
            .select_related("firm")
            .order_by("schedule_date", "id")
        )

    def get_entry(self, scheduled_id):
        return (
            ScheduledInvoice.objects
            .select_related("firm")
            .filter(id=scheduled_id)
            .first()
        )

    def claim_pending(self, scheduled_id):
        return (
            ScheduledInvoice.objects
            .select_for_update(skip_locked=True)
            .filter(id=scheduled_id, status=ScheduledInvoice.Status.PENDING)
            .first()
        )

    def set_entry_status(self, scheduled_id, status, executed_at=None, error="", invoice=None):
        allowed = ScheduledInvoice.TRANSITIONS[ScheduledInvoice.Status.PENDING]
        if status not in allowed:
            raise InvalidState(f"A scheduled invoice cannot be set to '{status}'")

        # Conditional update: only one writer can move an entry out of pending.
        updated = (
            ScheduledInvoice.objects
            .filter(id=scheduled_id, status=ScheduledInvoice.Status.PENDING)
            .update(
                status=status,
                executed_at=executed_at,
                error_message=error,
                invoice=invoice,
                updated_at=timezone.now(),
            )
        )
        if not updated:
            raise InvalidState(f"Scheduled invoice {scheduled_id} is no longer pending")

    def allocate_next_invoice_number(self, year):
        return self.numbering.get_next_number(year)

    def create_invoice_record(self, fields):
        return create_invoice_record(fields)

    def get_firm(self, firm_id):
        return Firm.objects.filter(id=firm_id).first()

    def atomic(self):
        return transaction.atomic()
