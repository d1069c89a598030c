"""Errors raised by invoice generation, delivery and scheduling."""


class InvoicingError(Exception):
    """Base class for invoicing errors whose message is safe to show an operator."""

    pass


class InvoiceValidationError(InvoicingError):
    """Missing or invalid input, e.g. an unknown firm reference."""

    pass


class NotFound(InvoicingError):
    """The referenced invoice, firm or scheduled entry does not exist."""

    pass


class InvalidState(InvoicingError):
    """The entity's current status does not allow the requested transition."""

    pass


class RenderFailure(InvoicingError):
    """The document template or the rendering backend failed."""

    pass


class DeliveryFailure(InvoicingError):
    """Email is not configured or the mail transport failed."""

    pass


class AllocationConflict(InvoicingError):
    """An allocated invoice number was already taken when persisting."""

    pass
