"""
Scheduled invoice batch processor.

Finds pending scheduled invoices whose date has come and, one at a time,
allocates a number, computes the amounts, renders a PDF, emails it and
records the outcome on the entry. A failing entry is marked failed and the
batch moves on; nothing is retried.
"""
import logging
from contextlib import closing
from dataclasses import dataclass, field
from datetime import date

from django.utils import timezone

from apps.invoices.calculation import calculate_amounts
from apps.invoices.delivery import InvoiceMailer
from apps.invoices.exceptions import InvalidState, InvoiceValidationError, NotFound
from apps.invoices.rendering import DocumentFormat, InvoiceRenderer, document_data
from apps.scheduling.models import ScheduledInvoice
from apps.scheduling.store import DjangoInvoiceStore, InvoiceStore

logger = logging.getLogger(__name__)


@dataclass
class BatchError:
    scheduled_id: int
    message: str


@dataclass
class BatchResult:
    processed_count: int = 0
    errors: list[BatchError] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "processed": self.processed_count,
            "errors": [{"id": e.scheduled_id, "error": e.message} for e in self.errors],
        }


@dataclass
class ProcessOneResult:
    invoice_number: str
    recipient: str


class ScheduledInvoiceProcessor:
    """Processes due scheduled invoices with injected collaborators."""

    def __init__(self, store: InvoiceStore, renderer, mailer, today: date | None = None):
        self.store = store
        self.renderer = renderer
        self.mailer = mailer
        self.today = today

    def _today(self) -> date:
        return self.today or timezone.localdate()

    def process_due(self) -> BatchResult:
        """Process every due pending entry, isolating failures."""
        today = self._today()
        entries = self.store.list_due_pending(today)
        logger.info("Processing %s due scheduled invoice(s) for %s", len(entries), today)

        result = BatchResult()
        for entry in entries:
            current = self.store.get_entry(entry.id)
            if current is None or current.status != ScheduledInvoice.Status.PENDING:
                logger.warning("Skipping scheduled invoice %s: no longer pending", entry.id)
                continue

            try:
                outcome = self._execute(current, today)
            except Exception as e:
                message = str(e) or e.__class__.__name__
                logger.error("Scheduled invoice %s failed: %s", current.id, message)
                self._record_failure(current.id, message)
                result.errors.append(BatchError(scheduled_id=current.id, message=message))
                continue

            if outcome is None:
                logger.warning("Skipping scheduled invoice %s: claimed by another run", current.id)
                continue
            result.processed_count += 1

        logger.info(
            "Scheduled invoice run finished: %s processed, %s failed",
            result.processed_count,
            len(result.errors),
        )
        return result

    def process_one(self, scheduled_id) -> ProcessOneResult:
        """Process a single entry now, raising on any failure."""
        entry = self.store.get_entry(scheduled_id)
        if entry is None:
            raise NotFound(f"Scheduled invoice {scheduled_id} not found")
        if entry.status != ScheduledInvoice.Status.PENDING:
            raise InvalidState(
                f"Scheduled invoice {scheduled_id} is already {entry.status}"
            )

        try:
            result = self._execute(entry, self._today())
        except Exception as e:
            self._record_failure(entry.id, str(e) or e.__class__.__name__)
            raise
        if result is None:
            raise InvalidState(f"Scheduled invoice {scheduled_id} is already being processed")
        return result

    def _execute(self, entry: ScheduledInvoice, today: date) -> ProcessOneResult | None:
        # A failure anywhere in here rolls back the invoice row, so the
        # allocated number is reused by the next entry.
        with self.store.atomic():
            # Row lock held until commit; None means the entry is not ours to send.
            entry = self.store.claim_pending(entry.id)
            if entry is None:
                return None

            firm = self.store.get_firm(entry.firm_id)
            if firm is None:
                raise InvoiceValidationError("Law firm not found")

            amounts = calculate_amounts(entry.base_amount, entry.num_users)
            invoice = self.store.create_invoice_record({
                "invoice_number": self.store.allocate_next_invoice_number(today.year),
                "firm": firm,
                "plan_type": entry.plan_type,
                "duration": entry.duration,
                "num_users": entry.num_users,
                "base_amount": entry.base_amount,
                "due_date": entry.schedule_date,
                **amounts.as_dict(),
            })

            document = self.renderer.render(DocumentFormat.PDF, document_data(invoice))
            recipients = self.mailer.deliver(
                invoice,
                firm,
                document.buffer,
                document.filename,
                content_type=document.content_type,
            )

            self.store.set_entry_status(
                entry.id,
                ScheduledInvoice.Status.EXECUTED,
                executed_at=timezone.now(),
                invoice=invoice,
            )

        logger.info(
            "Scheduled invoice %s executed as %s for %s",
            entry.id,
            invoice.invoice_number,
            firm.name,
        )
        return ProcessOneResult(
            invoice_number=invoice.invoice_number,
            recipient=recipients[0] if recipients else firm.email,
        )

    def _record_failure(self, scheduled_id, message: str):
        try:
            self.store.set_entry_status(
                scheduled_id,
                ScheduledInvoice.Status.FAILED,
                executed_at=timezone.now(),
                error=message,
            )
        except InvalidState:
            logger.warning(
                "Could not mark scheduled invoice %s failed: no longer pending",
                scheduled_id,
            )


def build_processor(mailer, today: date | None = None) -> ScheduledInvoiceProcessor:
    return ScheduledInvoiceProcessor(
        store=DjangoInvoiceStore(),
        renderer=InvoiceRenderer(),
        mailer=mailer,
        today=today,
    )


def process_due_scheduled_invoices(today: date | None = None) -> BatchResult:
    """Run a batch with one mail connection, opened on first use."""
    with closing(InvoiceMailer()) as mailer:
        return build_processor(mailer, today).process_due()


def process_scheduled_invoice(scheduled_id, today: date | None = None) -> ProcessOneResult:
    with closing(InvoiceMailer()) as mailer:
        return build_processor(mailer, today).process_one(scheduled_id)
