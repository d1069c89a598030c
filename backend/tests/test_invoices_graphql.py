"""Tests for invoice and email configuration GraphQL operations."""
from unittest.mock import Mock, patch

import pytest
from django.core import mail

from config.schema import schema
from apps.core.context import Context
from apps.invoices.models import EmailConfiguration, Invoice


def run_graphql(query, variables, context):
    """Helper to run GraphQL queries synchronously."""
    return schema.execute_sync(query, variable_values=variables, context_value=context)


def make_context(user=None):
    return Context(request=Mock(), user=user)


@pytest.fixture(autouse=True)
def renderer(fake_renderer):
    with patch("apps.invoices.services.InvoiceRenderer", return_value=fake_renderer):
        yield fake_renderer


GENERATE = """
    mutation Generate($input: InvoiceInput!, $format: DocumentFormat!) {
        generateInvoice(input: $input, format: $format) {
            success
            error
            downloadUrl
            invoice { id invoiceNumber status subtotal total dueDate firmName }
        }
    }
"""


def invoice_input(firm, **overrides):
    values = {
        "firmId": str(firm.id),
        "planType": "standard",
        "numUsers": 2,
        "baseAmount": "1000.00",
        "dueDate": "2026-04-30",
    }
    values.update(overrides)
    return values


class TestInvoiceQueries:
    def test_next_number_is_preview_only(self, user):
        query = "{ nextInvoiceNumber }"
        first = run_graphql(query, {}, make_context(user)).data["nextInvoiceNumber"]
        second = run_graphql(query, {}, make_context(user)).data["nextInvoiceNumber"]
        assert first == second
        assert first.endswith("-0001")

    def test_preview(self, user, firm):
        result = run_graphql(
            """
            query($input: InvoiceInput!) {
                invoicePreview(input: $input) {
                    invoiceNumber subtotal getfundLevy nhilLevy vat total dueDateDisplay
                }
            }
            """,
            {"input": invoice_input(firm)},
            make_context(user),
        )

        assert result.errors is None
        preview = result.data["invoicePreview"]
        assert preview["total"] == "2400.00"
        assert preview["vat"] == "300.00"
        assert preview["dueDateDisplay"] == "April 30, 2026"
        assert Invoice.objects.count() == 0

    def test_invoices_require_auth(self, db):
        result = run_graphql("{ invoices { id } }", {}, make_context())
        assert result.errors


class TestInvoiceMutations:
    def test_generate(self, user, firm):
        result = run_graphql(
            GENERATE,
            {"input": invoice_input(firm), "format": "PDF"},
            make_context(user),
        )

        assert result.errors is None
        payload = result.data["generateInvoice"]
        assert payload["success"] is True
        assert payload["invoice"]["status"] == "draft"
        assert payload["invoice"]["total"] == "2400.00"
        assert payload["invoice"]["firmName"] == "Mensah & Co."
        assert payload["downloadUrl"] == f"/api/invoices/{payload['invoice']['id']}/download/?format=pdf"

    def test_generate_unknown_firm(self, user, db):
        result = run_graphql(
            GENERATE,
            {"input": {"firmId": "9999"}, "format": "DOCX"},
            make_context(user),
        )

        assert result.data["generateInvoice"]["success"] is False
        assert result.data["generateInvoice"]["error"] == "Law firm not found"

    def test_generate_and_send(self, user, firm, email_config):
        result = run_graphql(
            """
            mutation($input: InvoiceInput!) {
                generateAndSendInvoice(input: $input) {
                    success error recipients invoice { status }
                }
            }
            """,
            {"input": invoice_input(firm, ccEmails="extra@mensah.example")},
            make_context(user),
        )

        payload = result.data["generateAndSendInvoice"]
        assert payload["success"] is True
        assert payload["invoice"]["status"] == "sent"
        assert "extra@mensah.example" in payload["recipients"]
        assert len(mail.outbox) == 1

    def test_mark_paid_and_unmark(self, user, firm, email_config):
        generated = run_graphql(
            "mutation($input: InvoiceInput!) { generateAndSendInvoice(input: $input) { invoice { id } } }",
            {"input": invoice_input(firm)},
            make_context(user),
        )
        invoice_id = generated.data["generateAndSendInvoice"]["invoice"]["id"]

        paid = run_graphql(
            "mutation($id: ID!) { markInvoicePaid(id: $id) { success invoice { status paidAt } } }",
            {"id": str(invoice_id)},
            make_context(user),
        )
        assert paid.data["markInvoicePaid"]["invoice"]["status"] == "paid"

        unpaid = run_graphql(
            "mutation($id: ID!) { unmarkInvoicePaid(id: $id) { success invoice { status paidAt } } }",
            {"id": str(invoice_id)},
            make_context(user),
        )
        assert unpaid.data["unmarkInvoicePaid"]["invoice"] == {"status": "sent", "paidAt": None}

    def test_mark_draft_paid_rejected(self, user, firm):
        generated = run_graphql(
            GENERATE, {"input": invoice_input(firm), "format": "DOCX"}, make_context(user)
        )
        invoice_id = generated.data["generateInvoice"]["invoice"]["id"]

        result = run_graphql(
            "mutation($id: ID!) { markInvoicePaid(id: $id) { success error } }",
            {"id": str(invoice_id)},
            make_context(user),
        )

        assert result.data["markInvoicePaid"]["success"] is False
        assert "cannot go from 'draft' to 'paid'" in result.data["markInvoicePaid"]["error"]

    def test_update_draft(self, user, firm):
        generated = run_graphql(
            GENERATE, {"input": invoice_input(firm), "format": "DOCX"}, make_context(user)
        )
        invoice_id = generated.data["generateInvoice"]["invoice"]["id"]

        result = run_graphql(
            """
            mutation($id: ID!, $input: UpdateDraftInvoiceInput!) {
                updateDraftInvoice(id: $id, input: $input) { success error invoice { numUsers total } }
            }
            """,
            {"id": str(invoice_id), "input": {"numUsers": 1}},
            make_context(user),
        )

        assert result.data["updateDraftInvoice"]["invoice"] == {"numUsers": 1, "total": "1200.00"}


class TestEmailConfig:
    SAVE = """
        mutation($input: EmailConfigInput!) {
            saveEmailConfig(input: $input) {
                success error config { smtpHost smtpPassword isConfigured }
            }
        }
    """

    def test_save_masks_password(self, admin_user):
        result = run_graphql(
            self.SAVE,
            {"input": {
                "smtpHost": "smtp.example.com",
                "smtpUser": "invoices@judy.example",
                "smtpPassword": "s3cret",
            }},
            make_context(admin_user),
        )

        assert result.data["saveEmailConfig"]["config"] == {
            "smtpHost": "smtp.example.com",
            "smtpPassword": "********",
            "isConfigured": True,
        }
        config = EmailConfiguration.load()
        assert config.smtp_password == "s3cret"
        assert config.from_email == "invoices@judy.example"

    def test_masked_password_keeps_stored_one(self, admin_user, email_config):
        run_graphql(
            self.SAVE,
            {"input": {"smtpHost": "smtp2.example.com", "smtpPassword": "********"}},
            make_context(admin_user),
        )

        config = EmailConfiguration.load()
        assert config.smtp_host == "smtp2.example.com"
        assert config.smtp_password == "secret"

    def test_save_requires_admin(self, user):
        result = run_graphql(
            self.SAVE, {"input": {"smtpHost": "smtp.example.com"}}, make_context(user)
        )
        assert result.data["saveEmailConfig"]["error"] == "Permission denied"

    def test_verify(self, user, email_config):
        result = run_graphql(
            "mutation { verifyEmailConfig { success error } }", {}, make_context(user)
        )
        assert result.data["verifyEmailConfig"] == {"success": True, "error": None}

    def test_verify_unconfigured(self, user):
        result = run_graphql(
            "mutation { verifyEmailConfig { success error } }", {}, make_context(user)
        )
        assert result.data["verifyEmailConfig"]["success"] is False
