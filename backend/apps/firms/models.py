"""Law firm models."""
from dataclasses import dataclass, field
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.core.validators import validate_email
from django.db import models

from apps.core.models import TimestampedModel


class PlanType(models.TextChoices):
    STANDARD = "standard", "Standard"
    PLUS = "plus", "Plus"


def normalize_emails(emails) -> list[str]:
    """Lower-case, strip and de-duplicate a list of addresses, keeping order.

    Accepts a list or a comma/semicolon separated string.
    """
    if not emails:
        return []
    if isinstance(emails, str):
        emails = emails.replace(";", ",").split(",")
    result = []
    for email in emails:
        email = email.strip().lower()
        if email and email not in result:
            result.append(email)
    return result


@dataclass
class Recipients:
    """Resolved envelope for an invoice email."""

    to: list[str]
    cc: list[str] = field(default_factory=list)
    bcc: list[str] = field(default_factory=list)

    @property
    def all(self) -> set[str]:
        return set(self.to) | set(self.cc) | set(self.bcc)


class Firm(TimestampedModel):
    """A client law firm billed for a research subscription."""

    name = models.CharField(max_length=255)
    street_address = models.CharField(max_length=255, blank=True)
    city = models.CharField(max_length=255, blank=True)
    email = models.EmailField(help_text="Primary billing contact")
    cc_emails = models.JSONField(
        default=list,
        blank=True,
        help_text="Additional recipients copied on invoice emails",
    )
    bcc_emails = models.JSONField(
        default=list,
        blank=True,
        help_text="Recipients blind-copied on invoice emails",
    )
    include_default_bcc = models.BooleanField(
        default=True,
        help_text="Also blind-copy the addresses in INVOICE_DEFAULT_BCC",
    )
    plan_type = models.CharField(
        max_length=20,
        choices=PlanType.choices,
        default=PlanType.STANDARD,
    )
    num_users = models.PositiveIntegerField(default=1)
    base_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Price per user for the subscription period",
    )
    subscription_start = models.DateField(null=True, blank=True)
    subscription_end = models.DateField(null=True, blank=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name

    def clean(self):
        errors = {}
        if self.num_users is not None and self.num_users < 1:
            errors["num_users"] = "A firm must have at least one user."
        if (
            self.subscription_start
            and self.subscription_end
            and self.subscription_end < self.subscription_start
        ):
            errors["subscription_end"] = "Subscription end cannot be before its start."
        for field_name in ("cc_emails", "bcc_emails"):
            for email in getattr(self, field_name) or []:
                try:
                    validate_email(email)
                except ValidationError:
                    errors[field_name] = f"Invalid email address: {email}"
                    break
        if errors:
            raise ValidationError(errors)

    @property
    def name_address(self) -> str:
        """Name and address block as printed on the invoice."""
        return "\n".join(p for p in [self.name, self.street_address, self.city] if p)

    def get_recipients(self, default_bcc: list[str] | None = None) -> Recipients:
        """Build the envelope for this firm, each address appearing once.

        Priority when an address is listed twice: to, then cc, then bcc.
        """
        to = normalize_emails([self.email])
        cc = [e for e in normalize_emails(self.cc_emails) if e not in to]
        bcc_candidates = list(self.bcc_emails or [])
        if self.include_default_bcc and default_bcc:
            bcc_candidates.extend(default_bcc)
        bcc = [e for e in normalize_emails(bcc_candidates) if e not in to and e not in cc]
        return Recipients(to=to, cc=cc, bcc=bcc)
