"""GraphQL schema for scheduled invoices and the scheduler."""
from datetime import date, datetime
from decimal import Decimal
from typing import List

import strawberry
from strawberry.types import Info

from apps.core.context import Context
from apps.core.permissions import check_auth, get_current_user
from apps.core.schema import DeleteResult
from apps.firms.models import Firm, PlanType
from apps.invoices.exceptions import InvoicingError
from apps.invoices.services import parse_amount
from apps.scheduling.bulk import bulk_schedule
from apps.scheduling.models import ScheduledInvoice, SchedulerSettings
from apps.scheduling.processor import (
    process_due_scheduled_invoices,
    process_scheduled_invoice,
)


# =========================================================================
# Types
# =========================================================================


@strawberry.type
class ScheduledInvoiceType:
    id: int
    firm_id: int
    firm_name: str
    schedule_date: date
    plan_type: str
    duration: str
    num_users: int
    base_amount: Decimal
    status: str
    executed_at: datetime | None
    error_message: str
    invoice_id: int | None
    invoice_number: str | None
    created_at: datetime


@strawberry.input
class ScheduledInvoiceInput:
    """Omitted plan, users and base amount are taken from the firm."""

    firm_id: strawberry.ID
    schedule_date: date
    plan_type: str = ""
    duration: str = "12 months"
    num_users: int | None = None
    base_amount: Decimal | None = None


@strawberry.input
class BulkScheduleInput:
    firm_ids: List[strawberry.ID] | None = None  # None means every firm
    lead_days: int | None = None
    duration: str = "12 months"


@strawberry.type
class ScheduledInvoiceResult:
    success: bool
    error: str | None = None
    scheduled_invoice: ScheduledInvoiceType | None = None


@strawberry.type
class SkippedFirmType:
    firm_id: int
    firm_name: str
    reason: str


@strawberry.type
class BulkScheduleResult:
    success: bool
    error: str | None = None
    created: List[ScheduledInvoiceType] = strawberry.field(default_factory=list)
    skipped: List[SkippedFirmType] = strawberry.field(default_factory=list)


@strawberry.type
class BatchErrorType:
    scheduled_id: int
    message: str


@strawberry.type
class ProcessScheduledResult:
    success: bool
    error: str | None = None
    processed_count: int = 0
    errors: List[BatchErrorType] = strawberry.field(default_factory=list)


@strawberry.type
class ProcessScheduledInvoiceResult:
    success: bool
    error: str | None = None
    invoice_number: str | None = None
    recipient: str | None = None


@strawberry.type
class ClearScheduledResult:
    success: bool
    error: str | None = None
    deleted_count: int = 0


@strawberry.type
class SchedulerStatusType:
    running: bool
    schedule: str
    last_run_at: datetime | None
    last_run_processed: int
    last_run_errors: int
    pending_count: int


def _convert_scheduled(entry: ScheduledInvoice) -> ScheduledInvoiceType:
    return ScheduledInvoiceType(
        id=entry.id,
        firm_id=entry.firm_id,
        firm_name=entry.firm.name,
        schedule_date=entry.schedule_date,
        plan_type=entry.plan_type,
        duration=entry.duration,
        num_users=entry.num_users,
        base_amount=entry.base_amount,
        status=entry.status,
        executed_at=entry.executed_at,
        error_message=entry.error_message,
        invoice_id=entry.invoice_id,
        invoice_number=entry.invoice.invoice_number if entry.invoice else None,
        created_at=entry.created_at,
    )


def _scheduler_status() -> SchedulerStatusType:
    scheduler = SchedulerSettings.load()
    return SchedulerStatusType(
        running=scheduler.enabled,
        schedule="Daily at 08:00",
        last_run_at=scheduler.last_run_at,
        last_run_processed=scheduler.last_run_processed,
        last_run_errors=scheduler.last_run_errors,
        pending_count=ScheduledInvoice.objects.filter(
            status=ScheduledInvoice.Status.PENDING
        ).count(),
    )


def _set_scheduler_enabled(enabled: bool) -> SchedulerStatusType:
    scheduler = SchedulerSettings.load()
    scheduler.enabled = enabled
    scheduler.save(update_fields=["enabled", "updated_at"])
    return _scheduler_status()


# =========================================================================
# Queries
# =========================================================================


@strawberry.type
class SchedulingQuery:
    @strawberry.field
    def scheduled_invoices(
        self, info: Info[Context, None], status: str | None = None
    ) -> List[ScheduledInvoiceType]:
        """List scheduled invoices by schedule date."""
        get_current_user(info)
        queryset = ScheduledInvoice.objects.select_related("firm", "invoice")
        if status:
            queryset = queryset.filter(status=status)
        return [_convert_scheduled(entry) for entry in queryset]

    @strawberry.field
    def scheduler_status(self, info: Info[Context, None]) -> SchedulerStatusType:
        get_current_user(info)
        return _scheduler_status()


# =========================================================================
# Mutations
# =========================================================================


@strawberry.type
class SchedulingMutation:
    @strawberry.mutation
    def create_scheduled_invoice(
        self, info: Info[Context, None], input: ScheduledInvoiceInput
    ) -> ScheduledInvoiceResult:
        _, err = check_auth(info)
        if err:
            return ScheduledInvoiceResult(success=False, error=err)

        firm = Firm.objects.filter(id=input.firm_id).first()
        if not firm:
            return ScheduledInvoiceResult(success=False, error="Law firm not found")

        plan_type = input.plan_type or firm.plan_type
        if plan_type not in PlanType.values:
            return ScheduledInvoiceResult(success=False, error=f"Unknown plan type: {plan_type}")
        num_users = input.num_users if input.num_users is not None else firm.num_users
        if num_users < 1:
            return ScheduledInvoiceResult(
                success=False, error="Number of users must be at least 1"
            )

        try:
            base_amount = parse_amount(
                input.base_amount if input.base_amount is not None else firm.base_price
            )
        except InvoicingError as e:
            return ScheduledInvoiceResult(success=False, error=str(e))

        entry = ScheduledInvoice.objects.create(
            firm=firm,
            schedule_date=input.schedule_date,
            plan_type=plan_type,
            duration=input.duration or "12 months",
            num_users=num_users,
            base_amount=base_amount,
        )
        return ScheduledInvoiceResult(success=True, scheduled_invoice=_convert_scheduled(entry))

    @strawberry.mutation
    def delete_scheduled_invoice(
        self, info: Info[Context, None], id: strawberry.ID
    ) -> DeleteResult:
        _, err = check_auth(info)
        if err:
            return DeleteResult(success=False, error=err)

        deleted, _ = ScheduledInvoice.objects.filter(id=id).delete()
        if not deleted:
            return DeleteResult(success=False, error="Scheduled invoice not found")
        return DeleteResult(success=True)

    @strawberry.mutation
    def bulk_schedule_invoices(
        self, info: Info[Context, None], input: BulkScheduleInput
    ) -> BulkScheduleResult:
        """Schedule renewals from each firm's subscription end date."""
        _, err = check_auth(info)
        if err:
            return BulkScheduleResult(success=False, error=err)

        if input.lead_days is not None and input.lead_days < 0:
            return BulkScheduleResult(success=False, error="Lead days cannot be negative")

        result = bulk_schedule(
            firm_ids=input.firm_ids,
            lead_days=input.lead_days,
            duration=input.duration,
        )
        return BulkScheduleResult(
            success=True,
            created=[_convert_scheduled(entry) for entry in result.created],
            skipped=[
                SkippedFirmType(firm_id=firm.id, firm_name=firm.name, reason=reason)
                for firm, reason in result.skipped
            ],
        )

    @strawberry.mutation
    def process_scheduled_invoices(self, info: Info[Context, None]) -> ProcessScheduledResult:
        """Process every due scheduled invoice now."""
        _, err = check_auth(info)
        if err:
            return ProcessScheduledResult(success=False, error=err)

        result = process_due_scheduled_invoices()
        return ProcessScheduledResult(
            success=True,
            processed_count=result.processed_count,
            errors=[
                BatchErrorType(scheduled_id=e.scheduled_id, message=e.message)
                for e in result.errors
            ],
        )

    @strawberry.mutation
    def process_scheduled_invoice(
        self, info: Info[Context, None], id: strawberry.ID
    ) -> ProcessScheduledInvoiceResult:
        """Process one pending scheduled invoice now, whatever its date."""
        _, err = check_auth(info)
        if err:
            return ProcessScheduledInvoiceResult(success=False, error=err)

        try:
            scheduled_id = int(id)
        except ValueError:
            return ProcessScheduledInvoiceResult(
                success=False, error=f"Scheduled invoice {id} not found"
            )

        try:
            result = process_scheduled_invoice(scheduled_id)
        except InvoicingError as e:
            return ProcessScheduledInvoiceResult(success=False, error=str(e))
        return ProcessScheduledInvoiceResult(
            success=True,
            invoice_number=result.invoice_number,
            recipient=result.recipient,
        )

    @strawberry.mutation
    def clear_finished_scheduled_invoices(
        self, info: Info[Context, None]
    ) -> ClearScheduledResult:
        """Delete executed and failed entries."""
        _, err = check_auth(info)
        if err:
            return ClearScheduledResult(success=False, error=err)

        deleted, _ = ScheduledInvoice.objects.exclude(
            status=ScheduledInvoice.Status.PENDING
        ).delete()
        return ClearScheduledResult(success=True, deleted_count=deleted)

    @strawberry.mutation
    def start_scheduler(self, info: Info[Context, None]) -> SchedulerStatusType:
        get_current_user(info)
        return _set_scheduler_enabled(True)

    @strawberry.mutation
    def stop_scheduler(self, info: Info[Context, None]) -> SchedulerStatusType:
        get_current_user(info)
        return _set_scheduler_enabled(False)
