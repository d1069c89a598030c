"""Invoice numbering service for sequential PREFIX-YEAR-NNNN numbers."""
import re
from datetime import date

from django.conf import settings
from django.utils import timezone

from apps.invoices.models import Invoice


class InvoiceNumberService:
    """Derives the next invoice number from the numbers already issued.

    The counter is not stored separately: the next number is the
    lexicographically last number of the year plus one. Allocation is only
    safe when callers serialise generation, and the unique constraint on
    ``Invoice.invoice_number`` catches any collision on persist.
    """

    def __init__(self, prefix: str | None = None):
        self.prefix = prefix or settings.INVOICE_NUMBER_PREFIX

    def get_next_number(self, year: int | None = None) -> str:
        """Return the number the next generated invoice in ``year`` gets."""
        if year is None:
            year = timezone.localdate().year
        last = self._last_counter(year)
        return self._format_number(self.prefix, year, last + 1)

    def preview_next_number(self, on: date | None = None) -> str:
        """Preview the next number without reserving it."""
        on = on or timezone.localdate()
        return self.get_next_number(on.year)

    def _last_counter(self, year: int) -> int:
        year_prefix = f"{self.prefix}-{year}-"
        last_number = (
            Invoice.objects
            .filter(invoice_number__startswith=year_prefix)
            .order_by("-invoice_number")
            .values_list("invoice_number", flat=True)
            .first()
        )
        if not last_number:
            return 0
        match = re.fullmatch(r"(\d+)", last_number[len(year_prefix):])
        return int(match.group(1)) if match else 0

    @staticmethod
    def _format_number(prefix: str, year: int, counter: int) -> str:
        return f"{prefix}-{year:04d}-{counter:04d}"
