"""Bulk creation of scheduled invoices from firm subscription end dates."""
import logging
from dataclasses import dataclass, field
from datetime import date, timedelta

from django.conf import settings
from django.db import transaction

from apps.firms.models import Firm
from apps.scheduling.models import ScheduledInvoice

logger = logging.getLogger(__name__)

SATURDAY = 5
SUNDAY = 6


def schedule_date_for(subscription_end: date, lead_days: int | None = None) -> date:
    """
    Date to invoice a renewal: lead_days before the subscription ends,
    moved back to the preceding Friday when that falls on a weekend.
    """
    if lead_days is None:
        lead_days = settings.SCHEDULE_LEAD_DAYS
    result = subscription_end - timedelta(days=lead_days)
    if result.weekday() == SATURDAY:
        result -= timedelta(days=1)
    elif result.weekday() == SUNDAY:
        result -= timedelta(days=2)
    return result


@dataclass
class BulkScheduleResult:
    created: list[ScheduledInvoice] = field(default_factory=list)
    skipped: list[tuple[Firm, str]] = field(default_factory=list)


def bulk_schedule(
    firm_ids=None,
    lead_days: int | None = None,
    duration: str = "12 months",
) -> BulkScheduleResult:
    """
    Create a pending scheduled invoice for each firm with a subscription
    end date. Plan, users and base price are copied from the firm.

    Firms already holding a pending entry on the computed date are skipped,
    so running this twice creates nothing new.
    """
    firms = Firm.objects.all()
    if firm_ids:
        firms = firms.filter(id__in=firm_ids)

    result = BulkScheduleResult()
    with transaction.atomic():
        for firm in firms:
            if not firm.subscription_end:
                result.skipped.append((firm, "No subscription end date"))
                continue

            schedule_date = schedule_date_for(firm.subscription_end, lead_days)
            already = ScheduledInvoice.objects.filter(
                firm=firm,
                schedule_date=schedule_date,
                status=ScheduledInvoice.Status.PENDING,
            ).exists()
            if already:
                result.skipped.append((firm, f"Already scheduled for {schedule_date}"))
                continue

            result.created.append(
                ScheduledInvoice.objects.create(
                    firm=firm,
                    schedule_date=schedule_date,
                    plan_type=firm.plan_type,
                    duration=duration,
                    num_users=firm.num_users,
                    base_amount=firm.base_price,
                )
            )

    logger.info(
        "Bulk scheduling created %s entries, skipped %s firms",
        len(result.created),
        len(result.skipped),
    )
    return result
