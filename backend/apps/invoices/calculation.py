"""Monetary calculation for subscription invoices.

All amounts are computed with Decimal so previews, generated invoices and
recomputed drafts agree to the cent.
"""
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

GETFUND_LEVY_RATE = Decimal("0.025")
NHIL_LEVY_RATE = Decimal("0.025")
VAT_RATE = Decimal("0.15")

CENT = Decimal("0.01")


@dataclass(frozen=True)
class InvoiceAmounts:
    """Derived monetary fields of an invoice."""

    subtotal: Decimal
    getfund_levy: Decimal
    nhil_levy: Decimal
    vat: Decimal
    total: Decimal

    def as_dict(self) -> dict[str, Decimal]:
        return {
            "subtotal": self.subtotal,
            "getfund_levy": self.getfund_levy,
            "nhil_levy": self.nhil_levy,
            "vat": self.vat,
            "total": self.total,
        }


def to_decimal(value) -> Decimal:
    """Convert an int, float, str or Decimal without picking up float noise."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_cents(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def calculate_amounts(base_amount, num_users) -> InvoiceAmounts:
    """
    Compute subtotal, levies, VAT and total for a subscription invoice.

    subtotal = base_amount * num_users; the two levies are 2.5% each and
    VAT is 15%, each taken from the unrounded subtotal and rounded half-up
    to the cent on its own. The total is the sum of the rounded parts.

    No validation: zero or negative inputs propagate arithmetically.
    """
    raw_subtotal = to_decimal(base_amount) * to_decimal(num_users)

    subtotal = round_cents(raw_subtotal)
    getfund_levy = round_cents(raw_subtotal * GETFUND_LEVY_RATE)
    nhil_levy = round_cents(raw_subtotal * NHIL_LEVY_RATE)
    vat = round_cents(raw_subtotal * VAT_RATE)
    total = subtotal + getfund_levy + nhil_levy + vat

    return InvoiceAmounts(
        subtotal=subtotal,
        getfund_levy=getfund_levy,
        nhil_levy=nhil_levy,
        vat=vat,
        total=total,
    )
