"""Celery tasks for scheduled invoices."""

import logging

from celery import shared_task
from django.utils import timezone

from apps.scheduling.models import SchedulerSettings
from apps.scheduling.processor import process_due_scheduled_invoices

logger = logging.getLogger(__name__)


@shared_task(acks_late=True, max_retries=0)
def process_scheduled_invoices_task() -> dict:
    """
    Periodic task: process every due scheduled invoice.

    Skips the run when the scheduler has been stopped. Failures are recorded
    on the entries themselves; the task is never retried.

    Returns:
        {"processed": n, "errors": [{"id": ..., "error": ...}]} or
        {"skipped": True} when the scheduler is stopped.
    """
    scheduler = SchedulerSettings.load()
    if not scheduler.enabled:
        logger.info("Scheduler is stopped, skipping scheduled invoice run")
        return {"skipped": True}

    result = process_due_scheduled_invoices()

    scheduler.last_run_at = timezone.now()
    scheduler.last_run_processed = result.processed_count
    scheduler.last_run_errors = len(result.errors)
    scheduler.save(update_fields=[
        "last_run_at", "last_run_processed", "last_run_errors", "updated_at",
    ])
    return result.as_dict()
