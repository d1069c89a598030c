"""Tests for invoice document rendering."""
from datetime import date
from decimal import Decimal
from unittest.mock import patch

import pytest

from apps.invoices.exceptions import RenderFailure
from apps.invoices.models import Invoice
from apps.invoices.rendering import (
    DocumentFormat,
    InvoiceRenderer,
    document_data,
    format_amount,
    format_date,
    safe_filename_part,
)


@pytest.fixture
def invoice(firm):
    invoice = Invoice(
        invoice_number="JUDY-2026-0001",
        firm=firm,
        plan_type="plus",
        duration="12 months",
        num_users=2,
        base_amount=Decimal("1000.00"),
        due_date=date(2026, 1, 15),
    )
    invoice.subtotal = Decimal("2000.00")
    invoice.getfund_levy = Decimal("50.00")
    invoice.nhil_levy = Decimal("50.00")
    invoice.vat = Decimal("300.00")
    invoice.total = Decimal("2400.00")
    return invoice


class TestFormatting:
    def test_format_amount(self):
        assert format_amount(Decimal("1234567.5")) == "1,234,567.50"
        assert format_amount(0) == "0.00"

    def test_format_date(self):
        assert format_date(date(2026, 1, 5)) == "January 5, 2026"

    def test_safe_filename_part(self):
        assert safe_filename_part("Mensah & Co.") == "Mensah___Co_"


class TestDocumentData:
    def test_placeholders(self, invoice):
        data = document_data(invoice)

        assert data["INVOICE_NUMBER"] == "JUDY-2026-0001"
        assert data["DUE_DATE"] == "January 15, 2026"
        assert data["NAME_ADDRESS"] == "Mensah & Co.\n12 Liberation Road\nAccra"
        assert data["USERS"] == "2"
        assert data["BASE"] == "1,000.00"
        assert data["GTFL"] == "50.00"
        assert data["NIHL"] == "50.00"
        assert data["VAT"] == "300.00"
        assert data["TOTAL"] == "2,400.00"


class TestInvoiceRenderer:
    def test_pdf(self, invoice):
        renderer = InvoiceRenderer()
        with patch("apps.invoices.rendering.HTML") as html_cls:
            html_cls.return_value.write_pdf.return_value = b"%PDF-1.7"
            document = renderer.render(DocumentFormat.PDF, document_data(invoice))

        assert document.buffer == b"%PDF-1.7"
        assert document.content_type == "application/pdf"
        assert document.filename == "Invoice_JUDY-2026-0001_Mensah___Co_.pdf"
        html = html_cls.call_args.kwargs["string"]
        assert "JUDY-2026-0001" in html
        assert "2,400.00" in html
        assert "12 Liberation Road" in html

    def test_pdf_backend_error(self, invoice):
        with patch("apps.invoices.rendering.HTML") as html_cls:
            html_cls.return_value.write_pdf.side_effect = OSError("cairo missing")
            with pytest.raises(RenderFailure):
                InvoiceRenderer().render("pdf", document_data(invoice))

    def test_docx_uses_plan_template(self, invoice, tmp_path):
        (tmp_path / "Plus.docx").write_bytes(b"template")
        renderer = InvoiceRenderer(
            template_dir=tmp_path,
            templates={"standard": "Standard.docx", "plus": "Plus.docx"},
        )

        with patch("apps.invoices.rendering.DocxTemplate") as docx_cls:
            docx_cls.return_value.save.side_effect = lambda out: out.write(b"PK docx")
            document = renderer.render(DocumentFormat.DOCX, document_data(invoice))

        assert docx_cls.call_args.args[0] == str(tmp_path / "Plus.docx")
        context = docx_cls.return_value.render.call_args.args[0]
        assert context["INVOICE_NUMBER"] == "JUDY-2026-0001"
        assert document.buffer == b"PK docx"
        assert document.filename.endswith(".docx")

    def test_docx_missing_template(self, invoice, tmp_path):
        renderer = InvoiceRenderer(template_dir=tmp_path)

        with pytest.raises(RenderFailure, match="Template not found"):
            renderer.render(DocumentFormat.DOCX, document_data(invoice))
