"""Scheduled invoice models."""
from decimal import Decimal

from django.db import models

from apps.core.models import SingletonModel, TimestampedModel
from apps.firms.models import PlanType


class ScheduledInvoice(TimestampedModel):
    """An intent to generate and email an invoice on or after a date."""

    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        EXECUTED = "executed", "Executed"
        FAILED = "failed", "Failed"

    # executed and failed are terminal
    TRANSITIONS = {
        Status.PENDING: {Status.EXECUTED, Status.FAILED},
        Status.EXECUTED: set(),
        Status.FAILED: set(),
    }

    firm = models.ForeignKey(
        "firms.Firm",
        on_delete=models.PROTECT,
        related_name="scheduled_invoices",
    )
    schedule_date = models.DateField(db_index=True)
    plan_type = models.CharField(
        max_length=20,
        choices=PlanType.choices,
        default=PlanType.STANDARD,
    )
    duration = models.CharField(max_length=50, default="12 months")
    num_users = models.IntegerField(default=1)
    base_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
    )
    status = models.CharField(
        max_length=10,
        choices=Status.choices,
        default=Status.PENDING,
        db_index=True,
    )
    executed_at = models.DateTimeField(null=True, blank=True)
    error_message = models.TextField(blank=True)
    invoice = models.ForeignKey(
        "invoices.Invoice",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="scheduled_entries",
        help_text="Invoice generated when this entry was executed",
    )

    class Meta:
        ordering = ["schedule_date", "id"]

    def __str__(self):
        return f"{self.firm} on {self.schedule_date} ({self.status})"

    @property
    def is_pending(self) -> bool:
        return self.status == self.Status.PENDING


class SchedulerSettings(SingletonModel, TimestampedModel):
    """Run state of the periodic scheduled-invoice task."""

    enabled = models.BooleanField(
        default=True,
        help_text="When off, the periodic task skips processing",
    )
    last_run_at = models.DateTimeField(null=True, blank=True)
    last_run_processed = models.IntegerField(default=0)
    last_run_errors = models.IntegerField(default=0)

    class Meta:
        verbose_name = "Scheduler Settings"
        verbose_name_plural = "Scheduler Settings"

    def __str__(self):
        return "Scheduler (running)" if self.enabled else "Scheduler (stopped)"
