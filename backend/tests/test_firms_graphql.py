"""Tests for firm GraphQL queries and mutations."""
from datetime import date
from decimal import Decimal
from unittest.mock import Mock

import pytest

from config.schema import schema
from apps.core.context import Context
from apps.firms.models import Firm
from apps.scheduling.models import ScheduledInvoice


def run_graphql(query, variables, context):
    """Helper to run GraphQL queries synchronously."""
    return schema.execute_sync(query, variable_values=variables, context_value=context)


def make_context(user=None):
    return Context(request=Mock(), user=user)


CREATE_FIRM = """
    mutation CreateFirm($input: FirmInput!) {
        createFirm(input: $input) {
            success
            error
            firm { id name email ccEmails bccEmails numUsers basePrice planType }
        }
    }
"""


class TestFirmQueries:
    def test_list_requires_auth(self, firm):
        result = run_graphql("{ firms { id } }", {}, make_context())
        assert result.errors
        assert "Authentication required" in str(result.errors[0])

    def test_search(self, user, firm):
        Firm.objects.create(name="Boateng Chambers", email="a@boateng.example")

        result = run_graphql(
            'query { firms(search: "mensah") { name } }', {}, make_context(user)
        )

        assert result.errors is None
        assert [f["name"] for f in result.data["firms"]] == ["Mensah & Co."]

    def test_single_firm(self, user, firm):
        result = run_graphql(
            "query($id: ID!) { firm(id: $id) { name ccEmails invoiceCount } }",
            {"id": str(firm.id)},
            make_context(user),
        )

        assert result.data["firm"] == {
            "name": "Mensah & Co.",
            "ccEmails": ["partner@mensah.example"],
            "invoiceCount": 0,
        }


class TestFirmMutations:
    def test_create_parses_email_lists(self, user):
        result = run_graphql(
            CREATE_FIRM,
            {
                "input": {
                    "name": "  Asante & Partners ",
                    "email": "Accounts@Asante.example",
                    "ccEmails": "a@asante.example; b@asante.example, a@asante.example",
                    "bccEmails": "",
                    "numUsers": 4,
                    "basePrice": "750.00",
                    "planType": "plus",
                }
            },
            make_context(user),
        )

        assert result.errors is None
        payload = result.data["createFirm"]
        assert payload["success"] is True
        assert payload["firm"]["name"] == "Asante & Partners"
        assert payload["firm"]["email"] == "accounts@asante.example"
        assert payload["firm"]["ccEmails"] == ["a@asante.example", "b@asante.example"]
        assert Firm.objects.get(name="Asante & Partners").base_price == Decimal("750.00")

    @pytest.mark.parametrize(
        "overrides",
        [
            {"planType": "gold"},
            {"numUsers": 0},
            {"email": "not-an-email"},
            {"ccEmails": "ok@x.example, broken"},
            {"subscriptionStart": "2026-05-01", "subscriptionEnd": "2026-04-01"},
        ],
    )
    def test_create_validation(self, user, overrides):
        values = {"name": "Bad Firm", "email": "ok@bad.example"}
        values.update(overrides)

        result = run_graphql(CREATE_FIRM, {"input": values}, make_context(user))

        assert result.errors is None
        assert result.data["createFirm"]["success"] is False
        assert result.data["createFirm"]["error"]
        assert not Firm.objects.filter(name="Bad Firm").exists()

    def test_update_partial(self, user, firm):
        result = run_graphql(
            """
            mutation($id: ID!, $input: UpdateFirmInput!) {
                updateFirm(id: $id, input: $input) { success error firm { city numUsers email } }
            }
            """,
            {"id": str(firm.id), "input": {"city": "Kumasi", "numUsers": 5}},
            make_context(user),
        )

        assert result.data["updateFirm"]["success"] is True
        assert result.data["updateFirm"]["firm"] == {
            "city": "Kumasi",
            "numUsers": 5,
            "email": "billing@mensah.example",
        }

    def test_delete(self, user, firm):
        result = run_graphql(
            "mutation($id: ID!) { deleteFirm(id: $id) { success error } }",
            {"id": str(firm.id)},
            make_context(user),
        )
        assert result.data["deleteFirm"]["success"] is True
        assert not Firm.objects.exists()

    def test_delete_refused_while_referenced(self, user, firm):
        ScheduledInvoice.objects.create(firm=firm, schedule_date=date(2026, 3, 1))

        result = run_graphql(
            "mutation($id: ID!) { deleteFirm(id: $id) { success error } }",
            {"id": str(firm.id)},
            make_context(user),
        )

        assert result.data["deleteFirm"]["success"] is False
        assert "scheduled invoices" in result.data["deleteFirm"]["error"]
        assert Firm.objects.filter(id=firm.id).exists()

    def test_requires_auth(self, db):
        result = run_graphql(
            CREATE_FIRM, {"input": {"name": "X", "email": "x@x.example"}}, make_context()
        )
        assert result.data["createFirm"] == {
            "success": False,
            "error": "Authentication required",
            "firm": None,
        }
