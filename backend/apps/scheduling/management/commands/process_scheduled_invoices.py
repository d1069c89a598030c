"""Management command to process due scheduled invoices."""

from django.core.management.base import BaseCommand, CommandError

from apps.invoices.exceptions import InvoicingError
from apps.scheduling.processor import (
    process_due_scheduled_invoices,
    process_scheduled_invoice,
)


class Command(BaseCommand):
    help = "Generate and email every pending scheduled invoice that is due"

    def add_arguments(self, parser):
        parser.add_argument(
            "--id",
            type=int,
            dest="scheduled_id",
            help="Process only this scheduled invoice, regardless of its date",
        )

    def handle(self, *args, **options):
        scheduled_id = options.get("scheduled_id")

        if scheduled_id is not None:
            try:
                result = process_scheduled_invoice(scheduled_id)
            except InvoicingError as e:
                raise CommandError(str(e)) from e
            self.stdout.write(self.style.SUCCESS(
                f"Invoice {result.invoice_number} sent to {result.recipient}"
            ))
            return

        result = process_due_scheduled_invoices()
        self.stdout.write(f"Processed: {result.processed_count}")
        for error in result.errors:
            self.stdout.write(self.style.ERROR(
                f"  Scheduled invoice {error.scheduled_id}: {error.message}"
            ))
        if not result.errors:
            self.stdout.write(self.style.SUCCESS("No errors"))
