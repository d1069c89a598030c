"""Invoice service: preview, generation, delivery and status changes."""
import logging
from datetime import date, timedelta
from decimal import Decimal, InvalidOperation

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from apps.firms.models import Firm, PlanType
from apps.invoices.calculation import calculate_amounts, round_cents, to_decimal
from apps.invoices.delivery import InvoiceMailer
from apps.invoices.exceptions import (
    AllocationConflict,
    InvalidState,
    InvoiceValidationError,
    NotFound,
)
from apps.invoices.models import Invoice
from apps.invoices.numbering import InvoiceNumberService
from apps.invoices.rendering import (
    DocumentFormat,
    InvoiceRenderer,
    document_data,
    format_date,
)
from apps.invoices.types import (
    GeneratedInvoice,
    InvoicePreview,
    InvoiceRequest,
    RenderedDocument,
)

logger = logging.getLogger(__name__)


def default_due_date(today: date | None = None) -> date:
    today = today or timezone.localdate()
    return today + timedelta(days=settings.INVOICE_PAYMENT_TERM_DAYS)


def parse_amount(value) -> Decimal:
    """Parse user input into a Decimal amount, rounded half-up to the cent."""
    try:
        amount = to_decimal(value)
        if not amount.is_finite():
            raise ValueError(value)
        return round_cents(amount)
    except (InvalidOperation, ValueError):
        raise InvoiceValidationError(f"Invalid amount: {value}")


def create_invoice_record(fields: dict) -> Invoice:
    """
    Persist a draft invoice. Monetary fields not given are derived from
    base_amount and num_users.

    A duplicate invoice number raises AllocationConflict.
    """
    invoice = Invoice(status=Invoice.Status.DRAFT, **fields)
    # Stored base has two decimals; amounts must be derived from that value.
    invoice.base_amount = parse_amount(invoice.base_amount)
    if "total" not in fields:
        invoice.apply_amounts(calculate_amounts(invoice.base_amount, invoice.num_users))
    try:
        with transaction.atomic():
            invoice.save()
    except IntegrityError as e:
        raise AllocationConflict(
            f"Invoice number {invoice.invoice_number} is already taken"
        ) from e
    return invoice


class InvoiceService:
    """Generates invoices for firms and manages their lifecycle."""

    def __init__(self, renderer=None, mailer_class=InvoiceMailer, numbering=None):
        self.renderer = renderer or InvoiceRenderer()
        self.mailer_class = mailer_class
        self.numbering = numbering or InvoiceNumberService()

    # --- Lookups ---

    def get_firm(self, firm_id) -> Firm:
        try:
            return Firm.objects.get(pk=firm_id)
        except (Firm.DoesNotExist, ValueError, TypeError):
            raise InvoiceValidationError("Law firm not found")

    def get_invoice(self, invoice_id) -> Invoice:
        try:
            return Invoice.objects.select_related("firm").get(pk=invoice_id)
        except (Invoice.DoesNotExist, ValueError, TypeError):
            raise NotFound(f"Invoice {invoice_id} not found")

    # --- Input handling ---

    def _line_item(self, request: InvoiceRequest, firm: Firm) -> dict:
        """Fill gaps in the request from the firm and validate it."""
        plan_type = request.plan_type or firm.plan_type
        if plan_type not in PlanType.values:
            raise InvoiceValidationError(f"Unknown plan type: {plan_type}")

        num_users = request.num_users if request.num_users is not None else firm.num_users
        if num_users < 1:
            raise InvoiceValidationError("Number of users must be at least 1")

        base_amount = (
            request.base_amount if request.base_amount is not None else firm.base_price
        )
        base_amount = parse_amount(base_amount)

        return {
            "plan_type": plan_type,
            "duration": request.duration or "12 months",
            "num_users": num_users,
            "base_amount": base_amount,
            "due_date": request.due_date or default_due_date(),
        }

    # --- Operations ---

    def preview(self, request: InvoiceRequest) -> InvoicePreview:
        """Show what generating would produce. Allocates nothing."""
        firm = self.get_firm(request.firm_id)
        item = self._line_item(request, firm)
        return InvoicePreview(
            firm_id=firm.id,
            firm_name=firm.name,
            invoice_number=self.numbering.preview_next_number(),
            amounts=calculate_amounts(item["base_amount"], item["num_users"]),
            due_date_display=format_date(item["due_date"]),
            **item,
        )

    def generate(
        self,
        request: InvoiceRequest,
        fmt: DocumentFormat | str = DocumentFormat.DOCX,
    ) -> GeneratedInvoice:
        """Allocate a number, persist a draft invoice and render it."""
        firm = self.get_firm(request.firm_id)
        item = self._line_item(request, firm)

        with transaction.atomic():
            invoice = create_invoice_record({
                "invoice_number": self.numbering.get_next_number(),
                "firm": firm,
                **item,
            })
            document = self.renderer.render(fmt, document_data(invoice))

        logger.info("Generated invoice %s for %s", invoice.invoice_number, firm.name)
        return GeneratedInvoice(invoice=invoice, document=document)

    def generate_and_send(self, request: InvoiceRequest) -> GeneratedInvoice:
        """Generate a PDF invoice and email it. Nothing is kept if sending fails."""
        firm = self.get_firm(request.firm_id)
        item = self._line_item(request, firm)

        with self.mailer_class() as mailer, transaction.atomic():
            invoice = create_invoice_record({
                "invoice_number": self.numbering.get_next_number(),
                "firm": firm,
                **item,
            })
            document = self.renderer.render(DocumentFormat.PDF, document_data(invoice))
            recipients = mailer.deliver(
                invoice,
                firm,
                document.buffer,
                document.filename,
                extra_recipients=request.cc_emails,
                content_type=document.content_type,
            )

        return GeneratedInvoice(invoice=invoice, document=document, recipients=recipients)

    def send_existing(
        self,
        invoice_id,
        fmt: DocumentFormat | str = DocumentFormat.PDF,
        extra_recipients=None,
    ) -> GeneratedInvoice:
        """Re-render a stored invoice and email it again."""
        invoice = self.get_invoice(invoice_id)
        document = self.render_existing(invoice, fmt)
        with self.mailer_class() as mailer:
            recipients = mailer.deliver(
                invoice,
                invoice.firm,
                document.buffer,
                document.filename,
                extra_recipients=extra_recipients,
                content_type=document.content_type,
            )
        return GeneratedInvoice(invoice=invoice, document=document, recipients=recipients)

    def render_existing(self, invoice, fmt: DocumentFormat | str) -> RenderedDocument:
        if not isinstance(invoice, Invoice):
            invoice = self.get_invoice(invoice)
        return self.renderer.render(fmt, document_data(invoice))

    def update_draft(self, invoice_id, **changes) -> Invoice:
        """Edit a draft's line item. Derived amounts are recomputed."""
        invoice = self.get_invoice(invoice_id)
        if not invoice.is_editable:
            raise InvalidState(
                f"Invoice {invoice.invoice_number} is {invoice.status}; "
                "only drafts can be edited"
            )

        unknown = set(changes) - set(Invoice.EDITABLE_FIELDS)
        if unknown:
            raise InvoiceValidationError(
                f"Fields cannot be edited: {', '.join(sorted(unknown))}"
            )

        for name, value in changes.items():
            if value is not None:
                setattr(invoice, name, value)

        if invoice.plan_type not in PlanType.values:
            raise InvoiceValidationError(f"Unknown plan type: {invoice.plan_type}")
        if invoice.num_users < 1:
            raise InvoiceValidationError("Number of users must be at least 1")

        invoice.base_amount = parse_amount(invoice.base_amount)
        invoice.apply_amounts(calculate_amounts(invoice.base_amount, invoice.num_users))
        invoice.save()
        return invoice

    def mark_paid(self, invoice_id) -> Invoice:
        invoice = self.get_invoice(invoice_id)
        invoice.mark_paid()
        return invoice

    def unmark_paid(self, invoice_id) -> Invoice:
        invoice = self.get_invoice(invoice_id)
        invoice.unmark_paid()
        return invoice
