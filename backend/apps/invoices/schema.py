"""GraphQL schema for invoices and email configuration."""
from datetime import date, datetime
from decimal import Decimal
from typing import List

import strawberry
from strawberry.types import Info

from apps.core.context import Context
from apps.core.permissions import check_admin, check_auth, get_current_user
from apps.firms.models import normalize_emails
from apps.invoices.delivery import InvoiceMailer
from apps.invoices.exceptions import InvoicingError
from apps.invoices.models import EmailConfiguration, Invoice
from apps.invoices.numbering import InvoiceNumberService
from apps.invoices.rendering import DocumentFormat
from apps.invoices.services import InvoiceService
from apps.invoices.types import InvoicePreview, InvoiceRequest

MASKED_PASSWORD = "********"

DocumentFormatEnum = strawberry.enum(DocumentFormat, name="DocumentFormat")


# =========================================================================
# Types
# =========================================================================


@strawberry.type
class InvoiceRecordType:
    """A generated invoice."""

    id: int
    invoice_number: str
    firm_id: int
    firm_name: str
    plan_type: str
    duration: str
    num_users: int
    base_amount: Decimal
    subtotal: Decimal
    getfund_levy: Decimal
    nhil_levy: Decimal
    vat: Decimal
    total: Decimal
    due_date: date
    status: str
    sent_at: datetime | None
    paid_at: datetime | None
    created_at: datetime


@strawberry.type
class InvoicePreviewType:
    """Calculated invoice preview; nothing is stored or allocated."""

    invoice_number: str
    firm_id: int
    firm_name: str
    plan_type: str
    duration: str
    num_users: int
    base_amount: Decimal
    subtotal: Decimal
    getfund_levy: Decimal
    nhil_levy: Decimal
    vat: Decimal
    total: Decimal
    due_date: date
    due_date_display: str


@strawberry.input
class InvoiceInput:
    """Line item for a new invoice. Omitted values come from the firm."""

    firm_id: strawberry.ID
    plan_type: str = ""
    duration: str = "12 months"
    num_users: int | None = None
    base_amount: Decimal | None = None
    due_date: date | None = None
    cc_emails: str = ""


@strawberry.input
class UpdateDraftInvoiceInput:
    plan_type: str | None = None
    duration: str | None = None
    num_users: int | None = None
    base_amount: Decimal | None = None
    due_date: date | None = None


@strawberry.type
class InvoiceResult:
    success: bool
    error: str | None = None
    invoice: InvoiceRecordType | None = None
    download_url: str | None = None


@strawberry.type
class SendInvoiceResult:
    success: bool
    error: str | None = None
    invoice: InvoiceRecordType | None = None
    recipients: List[str] = strawberry.field(default_factory=list)


@strawberry.type
class EmailConfigType:
    smtp_host: str
    smtp_port: int
    smtp_user: str
    smtp_password: str  # Always masked
    from_email: str
    from_name: str
    is_configured: bool


@strawberry.input
class EmailConfigInput:
    smtp_host: str
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""  # Empty or masked keeps the stored password
    from_email: str = ""
    from_name: str = "JUDY Legal Research"


@strawberry.type
class EmailConfigResult:
    success: bool
    error: str | None = None
    config: EmailConfigType | None = None


def _convert_record(invoice: Invoice) -> InvoiceRecordType:
    """Convert an Invoice model to its GraphQL type."""
    return InvoiceRecordType(
        id=invoice.id,
        invoice_number=invoice.invoice_number,
        firm_id=invoice.firm_id,
        firm_name=invoice.firm.name,
        plan_type=invoice.plan_type,
        duration=invoice.duration,
        num_users=invoice.num_users,
        base_amount=invoice.base_amount,
        subtotal=invoice.subtotal,
        getfund_levy=invoice.getfund_levy,
        nhil_levy=invoice.nhil_levy,
        vat=invoice.vat,
        total=invoice.total,
        due_date=invoice.due_date,
        status=invoice.status,
        sent_at=invoice.sent_at,
        paid_at=invoice.paid_at,
        created_at=invoice.created_at,
    )


def _convert_preview(preview: InvoicePreview) -> InvoicePreviewType:
    return InvoicePreviewType(
        invoice_number=preview.invoice_number,
        firm_id=preview.firm_id,
        firm_name=preview.firm_name,
        plan_type=preview.plan_type,
        duration=preview.duration,
        num_users=preview.num_users,
        base_amount=preview.base_amount,
        due_date=preview.due_date,
        due_date_display=preview.due_date_display,
        **preview.amounts.as_dict(),
    )


def _convert_email_config(config: EmailConfiguration) -> EmailConfigType:
    return EmailConfigType(
        smtp_host=config.smtp_host,
        smtp_port=config.smtp_port,
        smtp_user=config.smtp_user,
        smtp_password=MASKED_PASSWORD if config.smtp_password else "",
        from_email=config.from_email,
        from_name=config.from_name,
        is_configured=config.is_configured,
    )


def _to_request(input: InvoiceInput) -> InvoiceRequest:
    return InvoiceRequest(
        firm_id=input.firm_id,
        plan_type=input.plan_type,
        duration=input.duration,
        num_users=input.num_users,
        base_amount=input.base_amount,
        due_date=input.due_date,
        cc_emails=normalize_emails(input.cc_emails),
    )


def download_url(invoice: Invoice, fmt: DocumentFormat) -> str:
    return f"/api/invoices/{invoice.id}/download/?format={fmt.value}"


# =========================================================================
# Queries
# =========================================================================


@strawberry.type
class InvoiceQuery:
    """Invoice-related queries."""

    @strawberry.field
    def invoices(
        self,
        info: Info[Context, None],
        status: str | None = None,
        firm_id: strawberry.ID | None = None,
    ) -> List[InvoiceRecordType]:
        """List generated invoices, newest first."""
        get_current_user(info)
        queryset = Invoice.objects.select_related("firm")
        if status:
            queryset = queryset.filter(status=status)
        if firm_id:
            queryset = queryset.filter(firm_id=firm_id)
        return [_convert_record(inv) for inv in queryset]

    @strawberry.field
    def invoice(self, info: Info[Context, None], id: strawberry.ID) -> InvoiceRecordType | None:
        get_current_user(info)
        invoice = Invoice.objects.select_related("firm").filter(id=id).first()
        return _convert_record(invoice) if invoice else None

    @strawberry.field
    def next_invoice_number(self, info: Info[Context, None]) -> str:
        """Preview the next invoice number. Does not reserve it."""
        get_current_user(info)
        return InvoiceNumberService().preview_next_number()

    @strawberry.field
    def invoice_preview(
        self, info: Info[Context, None], input: InvoiceInput
    ) -> InvoicePreviewType:
        get_current_user(info)
        return _convert_preview(InvoiceService().preview(_to_request(input)))

    @strawberry.field
    def email_config(self, info: Info[Context, None]) -> EmailConfigType:
        get_current_user(info)
        return _convert_email_config(EmailConfiguration.load())


# =========================================================================
# Mutations
# =========================================================================


@strawberry.type
class InvoiceMutation:
    """Invoice-related mutations."""

    # ----- Generation and delivery -----

    @strawberry.mutation
    def generate_invoice(
        self,
        info: Info[Context, None],
        input: InvoiceInput,
        format: DocumentFormatEnum = DocumentFormat.DOCX,
    ) -> InvoiceResult:
        """Allocate a number and store a draft invoice."""
        _, err = check_auth(info)
        if err:
            return InvoiceResult(success=False, error=err)

        try:
            generated = InvoiceService().generate(_to_request(input), format)
        except InvoicingError as e:
            return InvoiceResult(success=False, error=str(e))

        return InvoiceResult(
            success=True,
            invoice=_convert_record(generated.invoice),
            download_url=download_url(generated.invoice, DocumentFormat(format)),
        )

    @strawberry.mutation
    def generate_and_send_invoice(
        self, info: Info[Context, None], input: InvoiceInput
    ) -> SendInvoiceResult:
        """Generate a PDF invoice and email it to the firm."""
        _, err = check_auth(info)
        if err:
            return SendInvoiceResult(success=False, error=err)

        try:
            generated = InvoiceService().generate_and_send(_to_request(input))
        except InvoicingError as e:
            return SendInvoiceResult(success=False, error=str(e))

        return SendInvoiceResult(
            success=True,
            invoice=_convert_record(generated.invoice),
            recipients=generated.recipients,
        )

    @strawberry.mutation
    def send_invoice(
        self,
        info: Info[Context, None],
        id: strawberry.ID,
        format: DocumentFormatEnum = DocumentFormat.PDF,
        cc_emails: str = "",
    ) -> SendInvoiceResult:
        """Email an existing invoice (again)."""
        _, err = check_auth(info)
        if err:
            return SendInvoiceResult(success=False, error=err)

        try:
            sent = InvoiceService().send_existing(
                id, format, extra_recipients=normalize_emails(cc_emails)
            )
        except InvoicingError as e:
            return SendInvoiceResult(success=False, error=str(e))

        return SendInvoiceResult(
            success=True,
            invoice=_convert_record(sent.invoice),
            recipients=sent.recipients,
        )

    # ----- Status and drafts -----

    @strawberry.mutation
    def update_draft_invoice(
        self,
        info: Info[Context, None],
        id: strawberry.ID,
        input: UpdateDraftInvoiceInput,
    ) -> InvoiceResult:
        _, err = check_auth(info)
        if err:
            return InvoiceResult(success=False, error=err)

        changes = {
            "plan_type": input.plan_type,
            "duration": input.duration,
            "num_users": input.num_users,
            "base_amount": input.base_amount,
            "due_date": input.due_date,
        }
        try:
            invoice = InvoiceService().update_draft(id, **changes)
        except InvoicingError as e:
            return InvoiceResult(success=False, error=str(e))
        return InvoiceResult(success=True, invoice=_convert_record(invoice))

    @strawberry.mutation
    def mark_invoice_paid(self, info: Info[Context, None], id: strawberry.ID) -> InvoiceResult:
        _, err = check_auth(info)
        if err:
            return InvoiceResult(success=False, error=err)

        try:
            invoice = InvoiceService().mark_paid(id)
        except InvoicingError as e:
            return InvoiceResult(success=False, error=str(e))
        return InvoiceResult(success=True, invoice=_convert_record(invoice))

    @strawberry.mutation
    def unmark_invoice_paid(self, info: Info[Context, None], id: strawberry.ID) -> InvoiceResult:
        _, err = check_auth(info)
        if err:
            return InvoiceResult(success=False, error=err)

        try:
            invoice = InvoiceService().unmark_paid(id)
        except InvoicingError as e:
            return InvoiceResult(success=False, error=str(e))
        return InvoiceResult(success=True, invoice=_convert_record(invoice))

    # ----- Email configuration -----

    @strawberry.mutation
    def save_email_config(
        self, info: Info[Context, None], input: EmailConfigInput
    ) -> EmailConfigResult:
        """Store SMTP settings. Administrators only."""
        _, err = check_admin(info)
        if err:
            return EmailConfigResult(success=False, error=err)

        if not input.smtp_host.strip():
            return EmailConfigResult(success=False, error="SMTP host is required")
        if not 0 < input.smtp_port < 65536:
            return EmailConfigResult(success=False, error="Invalid SMTP port")

        config = EmailConfiguration.load()
        config.smtp_host = input.smtp_host.strip()
        config.smtp_port = input.smtp_port
        config.smtp_user = input.smtp_user.strip()
        if input.smtp_password and input.smtp_password != MASKED_PASSWORD:
            config.smtp_password = input.smtp_password
        config.from_email = input.from_email.strip() or config.smtp_user
        config.from_name = input.from_name
        config.save()
        return EmailConfigResult(success=True, config=_convert_email_config(config))

    @strawberry.mutation
    def verify_email_config(self, info: Info[Context, None]) -> EmailConfigResult:
        """Open and close an SMTP connection with the stored settings."""
        _, err = check_auth(info)
        if err:
            return EmailConfigResult(success=False, error=err)

        config = EmailConfiguration.load()
        try:
            InvoiceMailer(config=config).verify()
        except InvoicingError as e:
            return EmailConfigResult(success=False, error=str(e))
        return EmailConfigResult(success=True, config=_convert_email_config(config))
