"""Pytest configuration and fixtures."""
from datetime import date
from decimal import Decimal
from unittest.mock import Mock

import pytest

from apps.firms.models import Firm
from apps.invoices.models import EmailConfiguration
from apps.invoices.types import RenderedDocument
from apps.users.models import User


@pytest.fixture
def user(db):
    """Create a regular operator account."""
    return User.objects.create_user(
        email="test@example.com",
        password="testpass123",
    )


@pytest.fixture
def admin_user(db):
    return User.objects.create_user(
        email="admin@example.com",
        password="admin12345",
        is_admin=True,
    )


@pytest.fixture
def firm(db):
    return Firm.objects.create(
        name="Mensah & Co.",
        street_address="12 Liberation Road",
        city="Accra",
        email="billing@mensah.example",
        cc_emails=["partner@mensah.example"],
        plan_type="standard",
        num_users=2,
        base_price=Decimal("1000.00"),
        subscription_start=date(2025, 4, 1),
        subscription_end=date(2026, 3, 31),
    )


@pytest.fixture
def email_config(db):
    config = EmailConfiguration.load()
    config.smtp_host = "smtp.example.com"
    config.smtp_port = 587
    config.smtp_user = "invoices@judy.example"
    config.smtp_password = "secret"
    config.from_email = "invoices@judy.example"
    config.save()
    return config


@pytest.fixture
def fake_renderer():
    """Renderer stand-in that returns a small PDF-like buffer."""
    renderer = Mock()
    renderer.render.side_effect = lambda kind, data: RenderedDocument(
        buffer=b"%PDF-1.7 fake",
        filename=f"Invoice_{data['INVOICE_NUMBER']}.pdf",
        content_type="application/pdf",
    )
    return renderer
