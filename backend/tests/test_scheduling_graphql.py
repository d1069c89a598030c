"""Tests for scheduled invoice and scheduler GraphQL operations."""
from datetime import date
from decimal import Decimal
from unittest.mock import Mock, patch

import pytest
from django.core import mail

from config.schema import schema
from apps.core.context import Context
from apps.invoices.models import Invoice
from apps.scheduling.models import ScheduledInvoice, SchedulerSettings


def run_graphql(query, variables, context):
    """Helper to run GraphQL queries synchronously."""
    return schema.execute_sync(query, variable_values=variables, context_value=context)


def make_context(user=None):
    return Context(request=Mock(), user=user)


def schedule(firm, schedule_date, status=ScheduledInvoice.Status.PENDING):
    return ScheduledInvoice.objects.create(
        firm=firm,
        schedule_date=schedule_date,
        plan_type="standard",
        num_users=2,
        base_amount=Decimal("1000.00"),
        status=status,
    )


class TestScheduledInvoiceMutations:
    CREATE = """
        mutation($input: ScheduledInvoiceInput!) {
            createScheduledInvoice(input: $input) {
                success
                error
                scheduledInvoice { firmName scheduleDate planType numUsers baseAmount status }
            }
        }
    """

    def test_create_uses_firm_defaults(self, user, firm):
        result = run_graphql(
            self.CREATE,
            {"input": {"firmId": str(firm.id), "scheduleDate": "2026-03-02"}},
            make_context(user),
        )

        assert result.errors is None
        entry = result.data["createScheduledInvoice"]["scheduledInvoice"]
        assert entry["firmName"] == "Mensah & Co."
        assert entry["scheduleDate"] == "2026-03-02"
        assert entry["planType"] == "standard"
        assert entry["numUsers"] == 2
        assert entry["status"] == "pending"

    def test_create_rejects_zero_users(self, user, firm):
        result = run_graphql(
            self.CREATE,
            {"input": {"firmId": str(firm.id), "scheduleDate": "2026-03-02", "numUsers": 0}},
            make_context(user),
        )

        assert result.data["createScheduledInvoice"]["success"] is False
        assert ScheduledInvoice.objects.count() == 0

    def test_create_rounds_base_to_cents(self, user, firm):
        result = run_graphql(
            self.CREATE,
            {"input": {"firmId": str(firm.id), "scheduleDate": "2026-03-02", "baseAmount": "100.005"}},
            make_context(user),
        )

        assert result.data["createScheduledInvoice"]["success"] is True
        assert ScheduledInvoice.objects.get().base_amount == Decimal("100.01")

    def test_create_unknown_firm(self, user):
        result = run_graphql(
            self.CREATE,
            {"input": {"firmId": "4242", "scheduleDate": "2026-03-02"}},
            make_context(user),
        )
        assert result.data["createScheduledInvoice"]["error"] == "Law firm not found"

    def test_delete(self, user, firm):
        entry = schedule(firm, date(2026, 3, 2))

        result = run_graphql(
            "mutation($id: ID!) { deleteScheduledInvoice(id: $id) { success error } }",
            {"id": str(entry.id)},
            make_context(user),
        )

        assert result.data["deleteScheduledInvoice"]["success"] is True
        assert not ScheduledInvoice.objects.exists()

    def test_clear_finished_keeps_pending(self, user, firm):
        pending = schedule(firm, date(2026, 3, 2))
        schedule(firm, date(2026, 1, 2), status=ScheduledInvoice.Status.EXECUTED)
        schedule(firm, date(2026, 1, 3), status=ScheduledInvoice.Status.FAILED)

        result = run_graphql(
            "mutation { clearFinishedScheduledInvoices { success deletedCount } }",
            {},
            make_context(user),
        )

        assert result.data["clearFinishedScheduledInvoices"]["deletedCount"] == 2
        assert list(ScheduledInvoice.objects.all()) == [pending]

    def test_bulk_schedule(self, user, firm):
        query = """
            mutation($input: BulkScheduleInput!) {
                bulkScheduleInvoices(input: $input) {
                    success
                    created { scheduleDate }
                    skipped { firmName reason }
                }
            }
        """

        first = run_graphql(query, {"input": {"leadDays": 30}}, make_context(user))
        second = run_graphql(query, {"input": {"leadDays": 30}}, make_context(user))

        assert first.data["bulkScheduleInvoices"]["created"] == [{"scheduleDate": "2026-02-27"}]
        assert second.data["bulkScheduleInvoices"]["created"] == []
        assert second.data["bulkScheduleInvoices"]["skipped"] == [
            {"firmName": "Mensah & Co.", "reason": "Already scheduled for 2026-02-27"}
        ]

    def test_bulk_schedule_negative_lead_days(self, user, firm):
        result = run_graphql(
            "mutation($input: BulkScheduleInput!) { bulkScheduleInvoices(input: $input) { success error } }",
            {"input": {"leadDays": -1}},
            make_context(user),
        )
        assert result.data["bulkScheduleInvoices"]["success"] is False


class TestProcessing:
    @pytest.fixture(autouse=True)
    def renderer(self, fake_renderer):
        with patch("apps.scheduling.processor.InvoiceRenderer", return_value=fake_renderer):
            yield fake_renderer

    def test_process_one_ignores_schedule_date(self, user, firm, email_config):
        entry = schedule(firm, date(2099, 1, 1))

        result = run_graphql(
            "mutation($id: ID!) { processScheduledInvoice(id: $id) { success error invoiceNumber recipient } }",
            {"id": str(entry.id)},
            make_context(user),
        )

        payload = result.data["processScheduledInvoice"]
        assert payload["success"] is True
        assert payload["recipient"] == "billing@mensah.example"
        entry.refresh_from_db()
        assert entry.status == ScheduledInvoice.Status.EXECUTED
        assert entry.invoice.invoice_number == payload["invoiceNumber"]
        assert entry.invoice.due_date == date(2099, 1, 1)
        assert len(mail.outbox) == 1

    def test_process_one_non_numeric_id(self, user):
        result = run_graphql(
            "mutation($id: ID!) { processScheduledInvoice(id: $id) { success error } }",
            {"id": "abc"},
            make_context(user),
        )

        assert result.errors is None
        assert result.data["processScheduledInvoice"] == {
            "success": False,
            "error": "Scheduled invoice abc not found",
        }

    def test_process_one_already_executed(self, user, firm):
        entry = schedule(firm, date(2026, 1, 1), status=ScheduledInvoice.Status.EXECUTED)

        result = run_graphql(
            "mutation($id: ID!) { processScheduledInvoice(id: $id) { success error } }",
            {"id": str(entry.id)},
            make_context(user),
        )

        assert result.data["processScheduledInvoice"]["success"] is False
        assert not Invoice.objects.exists()

    def test_process_due_without_email_config(self, user, firm):
        entry = schedule(firm, date(2020, 1, 1))

        result = run_graphql(
            "mutation { processScheduledInvoices { success processedCount errors { scheduledId message } } }",
            {},
            make_context(user),
        )

        payload = result.data["processScheduledInvoices"]
        assert payload["processedCount"] == 0
        assert payload["errors"][0]["scheduledId"] == entry.id
        assert "Email is not configured" in payload["errors"][0]["message"]
        entry.refresh_from_db()
        assert entry.status == ScheduledInvoice.Status.FAILED
        assert not Invoice.objects.exists()


class TestScheduler:
    STATUS = "{ schedulerStatus { running schedule pendingCount lastRunAt } }"

    def test_status(self, user, firm):
        schedule(firm, date(2026, 3, 2))

        result = run_graphql(self.STATUS, {}, make_context(user))

        assert result.data["schedulerStatus"] == {
            "running": True,
            "schedule": "Daily at 08:00",
            "pendingCount": 1,
            "lastRunAt": None,
        }

    def test_stop_and_start(self, user):
        stopped = run_graphql("mutation { stopScheduler { running } }", {}, make_context(user))
        assert stopped.data["stopScheduler"]["running"] is False
        assert SchedulerSettings.load().enabled is False

        started = run_graphql("mutation { startScheduler { running } }", {}, make_context(user))
        assert started.data["startScheduler"]["running"] is True

    def test_stop_requires_auth(self, db):
        result = run_graphql("mutation { stopScheduler { running } }", {}, make_context())
        assert result.errors
        assert SchedulerSettings.load().enabled is True


class TestDashboardStats:
    def test_counts(self, user, firm):
        schedule(firm, date(2026, 3, 2))
        schedule(firm, date(2026, 1, 2), status=ScheduledInvoice.Status.EXECUTED)
        Invoice.objects.create(
            invoice_number="JUDY-2026-0001",
            firm=firm,
            plan_type="standard",
            num_users=2,
            base_amount=Decimal("1000.00"),
            subtotal=Decimal("2000.00"),
            getfund_levy=Decimal("50.00"),
            nhil_levy=Decimal("50.00"),
            vat=Decimal("300.00"),
            total=Decimal("2400.00"),
            due_date=date(2026, 4, 30),
            status=Invoice.Status.SENT,
        )

        result = run_graphql(
            "{ dashboardStats { totalFirms totalInvoices pendingScheduled sentInvoices paidInvoices } }",
            {},
            make_context(user),
        )

        assert result.data["dashboardStats"] == {
            "totalFirms": 1,
            "totalInvoices": 1,
            "pendingScheduled": 1,
            "sentInvoices": 1,
            "paidInvoices": 0,
        }
