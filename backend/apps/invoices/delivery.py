"""Email delivery of invoice documents."""
import logging
import smtplib

from django.conf import settings
from django.core.mail import EmailMessage, get_connection
from django.template.loader import render_to_string

from apps.firms.models import normalize_emails
from apps.invoices.exceptions import DeliveryFailure
from apps.invoices.models import EmailConfiguration, Invoice
from apps.invoices.rendering import PLAN_LABELS, format_amount, format_date

logger = logging.getLogger(__name__)


class InvoiceMailer:
    """
    Sends invoice documents over one mail connection.

    The connection is built from the EmailConfiguration row and kept open
    between messages, so a batch run opens SMTP once:

        with InvoiceMailer() as mailer:
            mailer.deliver(invoice, firm, buffer, filename)

    Delivering an invoice marks it as sent.
    """

    def __init__(self, config: EmailConfiguration | None = None, default_bcc=None):
        self.config = config or EmailConfiguration.load()
        self.default_bcc = (
            settings.INVOICE_DEFAULT_BCC if default_bcc is None else default_bcc
        )
        self.connection = None

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def open(self):
        if self.connection is not None:
            return
        if not self.config.is_configured:
            raise DeliveryFailure(
                "Email is not configured. Please set up SMTP settings first."
            )
        connection = get_connection(
            host=self.config.smtp_host,
            port=self.config.smtp_port,
            username=self.config.smtp_user,
            password=self.config.smtp_password,
            use_ssl=self.config.use_ssl,
            use_tls=not self.config.use_ssl,
            timeout=settings.EMAIL_TIMEOUT,
            fail_silently=False,
        )
        try:
            connection.open()
        except (smtplib.SMTPException, OSError) as e:
            raise DeliveryFailure(f"Could not connect to SMTP server: {e}") from e
        self.connection = connection

    def close(self):
        if self.connection is None:
            return
        try:
            self.connection.close()
        except (smtplib.SMTPException, OSError):
            logger.warning("Error while closing SMTP connection", exc_info=True)
        finally:
            self.connection = None

    def verify(self) -> bool:
        """Open and close a connection to check the stored settings."""
        self.open()
        self.close()
        return True

    def deliver(
        self,
        invoice: Invoice,
        firm,
        buffer: bytes,
        filename: str,
        extra_recipients=None,
        content_type: str = "application/pdf",
    ) -> list[str]:
        """Email the document to the firm and mark the invoice sent.

        Returns the list of envelope recipients.
        """
        recipients = firm.get_recipients(self.default_bcc)
        if not recipients.to:
            raise DeliveryFailure(f"Firm '{firm.name}' has no email address")

        cc = list(recipients.cc)
        for email in normalize_emails(extra_recipients):
            if email not in recipients.all and email not in cc:
                cc.append(email)

        self.open()
        message = EmailMessage(
            subject=self.subject_for(invoice),
            body=self.body_for(invoice, firm),
            from_email=self.config.sender,
            to=recipients.to,
            cc=cc,
            bcc=recipients.bcc,
            connection=self.connection,
        )
        message.content_subtype = "html"
        message.attach(filename, buffer, content_type)

        try:
            message.send(fail_silently=False)
        except (smtplib.SMTPException, OSError) as e:
            # The next delivery reconnects instead of reusing a dead socket.
            self.close()
            raise DeliveryFailure(
                f"Failed to send invoice {invoice.invoice_number}: {e}"
            ) from e

        invoice.mark_sent()
        logger.info(
            "Sent invoice %s to %s", invoice.invoice_number, ", ".join(recipients.to)
        )
        return recipients.to + cc + recipients.bcc

    def subject_for(self, invoice: Invoice) -> str:
        return f"Invoice {invoice.invoice_number} from {settings.INVOICE_ISSUER['name']}"

    def body_for(self, invoice: Invoice, firm) -> str:
        return render_to_string(
            "invoices/email/invoice_email.html",
            {
                "invoice": invoice,
                "firm": firm,
                "plan_label": PLAN_LABELS.get(invoice.plan_type, invoice.plan_type),
                "due_date": format_date(invoice.due_date),
                "total": format_amount(invoice.total),
                "currency": settings.INVOICE_CURRENCY,
                "issuer": settings.INVOICE_ISSUER,
            },
        )
