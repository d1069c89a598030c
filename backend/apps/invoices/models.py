"""Invoice and email configuration models."""
from django.db import models
from django.utils import timezone

from apps.core.models import SingletonModel, TimestampedModel
from apps.firms.models import PlanType
from apps.invoices.calculation import InvoiceAmounts
from apps.invoices.exceptions import InvalidState


class Invoice(TimestampedModel):
    """A generated subscription invoice with a frozen number and amounts."""

    class Status(models.TextChoices):
        DRAFT = "draft", "Draft"
        SENT = "sent", "Sent"
        PAID = "paid", "Paid"

    # Allowed status transitions; anything else raises InvalidState.
    # sent -> sent is a re-delivery of the same invoice.
    TRANSITIONS = {
        Status.DRAFT: {Status.SENT},
        Status.SENT: {Status.SENT, Status.PAID},
        Status.PAID: {Status.SENT},
    }

    EDITABLE_FIELDS = ["plan_type", "duration", "num_users", "base_amount", "due_date"]

    invoice_number = models.CharField(
        max_length=50,
        unique=True,
        help_text="Sequential number PREFIX-YEAR-NNNN, assigned at generation",
    )
    firm = models.ForeignKey(
        "firms.Firm",
        on_delete=models.PROTECT,
        related_name="invoices",
    )

    # Line item
    plan_type = models.CharField(
        max_length=20,
        choices=PlanType.choices,
        default=PlanType.STANDARD,
    )
    duration = models.CharField(max_length=50, help_text="e.g. '12 months'")
    num_users = models.IntegerField(default=1)
    base_amount = models.DecimalField(max_digits=12, decimal_places=2)

    # Derived amounts
    subtotal = models.DecimalField(max_digits=12, decimal_places=2)
    getfund_levy = models.DecimalField(max_digits=12, decimal_places=2)
    nhil_levy = models.DecimalField(max_digits=12, decimal_places=2)
    vat = models.DecimalField(max_digits=12, decimal_places=2)
    total = models.DecimalField(max_digits=12, decimal_places=2)

    due_date = models.DateField()
    status = models.CharField(
        max_length=10,
        choices=Status.choices,
        default=Status.DRAFT,
    )
    sent_at = models.DateTimeField(null=True, blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return f"Invoice {self.invoice_number}"

    @property
    def is_editable(self) -> bool:
        return self.status == self.Status.DRAFT

    @property
    def amounts(self) -> InvoiceAmounts:
        return InvoiceAmounts(
            subtotal=self.subtotal,
            getfund_levy=self.getfund_levy,
            nhil_levy=self.nhil_levy,
            vat=self.vat,
            total=self.total,
        )

    def apply_amounts(self, amounts: InvoiceAmounts):
        """Copy derived amounts onto the instance (does not save)."""
        for name, value in amounts.as_dict().items():
            setattr(self, name, value)

    def _transition(self, new_status: str):
        allowed = self.TRANSITIONS.get(self.Status(self.status), set())
        if new_status not in allowed:
            raise InvalidState(
                f"Invoice {self.invoice_number} cannot go from "
                f"'{self.status}' to '{new_status}'"
            )
        self.status = new_status

    def mark_sent(self, sent_at=None):
        self._transition(self.Status.SENT)
        self.sent_at = sent_at or timezone.now()
        self.paid_at = None
        self.save(update_fields=["status", "sent_at", "paid_at", "updated_at"])

    def mark_paid(self, paid_at=None):
        self._transition(self.Status.PAID)
        self.paid_at = paid_at or timezone.now()
        self.save(update_fields=["status", "paid_at", "updated_at"])

    def unmark_paid(self):
        if self.status != self.Status.PAID:
            raise InvalidState(f"Invoice {self.invoice_number} is not marked as paid")
        self._transition(self.Status.SENT)
        self.paid_at = None
        self.save(update_fields=["status", "paid_at", "updated_at"])


class EmailConfiguration(SingletonModel, TimestampedModel):
    """SMTP settings used to deliver invoices, editable at runtime."""

    smtp_host = models.CharField(max_length=255, blank=True)
    smtp_port = models.PositiveIntegerField(default=587)
    smtp_user = models.CharField(max_length=255, blank=True)
    smtp_password = models.CharField(max_length=255, blank=True)
    from_email = models.EmailField(blank=True)
    from_name = models.CharField(max_length=255, default="JUDY Legal Research")

    class Meta:
        verbose_name = "Email Configuration"
        verbose_name_plural = "Email Configuration"

    def __str__(self):
        return f"SMTP {self.smtp_host or '(not configured)'}"

    @property
    def is_configured(self) -> bool:
        return bool(self.smtp_host and self.from_email)

    @property
    def use_ssl(self) -> bool:
        """Port 465 is implicit TLS; every other port upgrades with STARTTLS."""
        return self.smtp_port == 465

    @property
    def sender(self) -> str:
        if self.from_name:
            return f'"{self.from_name}" <{self.from_email}>'
        return self.from_email
