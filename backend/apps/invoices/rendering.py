"""Invoice document rendering (PDF via WeasyPrint, DOCX via docxtpl)."""
import io
import logging
import re
from datetime import date
from enum import Enum
from pathlib import Path

from django.conf import settings
from django.template.loader import render_to_string
from docxtpl import DocxTemplate, Listing
from weasyprint import HTML

from apps.invoices.calculation import round_cents, to_decimal
from apps.invoices.exceptions import RenderFailure
from apps.invoices.types import RenderedDocument

logger = logging.getLogger(__name__)


class DocumentFormat(str, Enum):
    PDF = "pdf"
    DOCX = "docx"


CONTENT_TYPES = {
    DocumentFormat.PDF: "application/pdf",
    DocumentFormat.DOCX: (
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
    ),
}

PLAN_LABELS = {"standard": "Standard", "plus": "Plus"}


def format_amount(value) -> str:
    """Format a monetary value as ``2,400.00``."""
    return f"{round_cents(to_decimal(value)):,.2f}"


def format_date(value: date) -> str:
    """Format a date as ``January 15, 2026``."""
    return f"{value:%B} {value.day}, {value.year}"


def safe_filename_part(name: str) -> str:
    return re.sub(r"[^a-zA-Z0-9]", "_", name)


def document_data(invoice) -> dict:
    """Build the template placeholders for an invoice (saved or not)."""
    firm = invoice.firm
    return {
        "INVOICE_NUMBER": invoice.invoice_number,
        "DUE_DATE": format_date(invoice.due_date),
        "NAME_ADDRESS": firm.name_address,
        "DURATION": invoice.duration,
        "USERS": str(invoice.num_users),
        "BASE": format_amount(invoice.base_amount),
        "SUBTOTAL": format_amount(invoice.subtotal),
        "GTFL": format_amount(invoice.getfund_levy),
        "NIHL": format_amount(invoice.nhil_levy),
        "VAT": format_amount(invoice.vat),
        "TOTAL": format_amount(invoice.total),
        "PLAN_TYPE": invoice.plan_type,
        "PLAN_LABEL": PLAN_LABELS.get(invoice.plan_type, invoice.plan_type.title()),
        "FIRM_NAME": firm.name,
    }


class InvoiceRenderer:
    """Renders invoice documents from the placeholder dict built by document_data()."""

    def __init__(self, template_dir: Path | None = None, templates: dict | None = None):
        self.template_dir = Path(template_dir or settings.INVOICE_TEMPLATE_DIR)
        self.templates = templates or settings.INVOICE_DOCX_TEMPLATES

    def render(self, kind: DocumentFormat | str, data: dict) -> RenderedDocument:
        kind = DocumentFormat(kind)
        if kind == DocumentFormat.DOCX:
            buffer = self._render_docx(data)
        else:
            buffer = self._render_pdf(data)

        filename = (
            f"Invoice_{data['INVOICE_NUMBER']}_"
            f"{safe_filename_part(data['FIRM_NAME'])}.{kind.value}"
        )
        logger.debug("Rendered %s (%s bytes)", filename, len(buffer))
        return RenderedDocument(
            buffer=buffer,
            filename=filename,
            content_type=CONTENT_TYPES[kind],
        )

    def template_path(self, plan_type: str) -> Path:
        name = self.templates.get(plan_type) or self.templates["standard"]
        return self.template_dir / name

    def _render_docx(self, data: dict) -> bytes:
        path = self.template_path(data["PLAN_TYPE"])
        if not path.is_file():
            raise RenderFailure(f"Template not found: {path.name}")

        context = dict(data)
        context["NAME_ADDRESS"] = Listing(data["NAME_ADDRESS"])
        try:
            doc = DocxTemplate(str(path))
            doc.render(context)
            output = io.BytesIO()
            doc.save(output)
        except Exception as e:
            raise RenderFailure(f"Failed to render {path.name}: {e}") from e
        return output.getvalue()

    def _render_pdf(self, data: dict) -> bytes:
        html = render_to_string(
            "invoices/invoice.html",
            {
                "invoice": data,
                "address_lines": data["NAME_ADDRESS"].split("\n"),
                "issuer": settings.INVOICE_ISSUER,
                "currency": settings.INVOICE_CURRENCY,
            },
        )
        try:
            return HTML(string=html).write_pdf()
        except Exception as e:
            raise RenderFailure(f"Failed to render PDF: {e}") from e
