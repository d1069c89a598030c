"""GraphQL schema for law firms."""
from dataclasses import asdict
from datetime import date
from decimal import Decimal

import strawberry
from strawberry import auto
import strawberry_django
from strawberry.types import Info
from django.core.exceptions import ValidationError
from django.db.models import ProtectedError, Q

from apps.core.context import Context
from apps.core.permissions import check_auth, get_current_user
from apps.core.schema import DeleteResult
from .models import Firm, normalize_emails


@strawberry_django.type(Firm)
class FirmType:
    id: auto
    name: auto
    street_address: auto
    city: auto
    email: auto
    include_default_bcc: auto
    plan_type: auto
    num_users: auto
    base_price: auto
    subscription_start: auto
    subscription_end: auto
    created_at: auto
    updated_at: auto

    @strawberry.field
    def cc_emails(self) -> list[str]:
        return list(self.cc_emails or [])

    @strawberry.field
    def bcc_emails(self) -> list[str]:
        return list(self.bcc_emails or [])

    @strawberry.field
    def invoice_count(self) -> int:
        return self.invoices.count()


@strawberry.input
class FirmInput:
    """Firm fields. Email lists are comma or semicolon separated."""

    name: str
    email: str
    street_address: str = ""
    city: str = ""
    cc_emails: str = ""
    bcc_emails: str = ""
    include_default_bcc: bool = True
    plan_type: str = "standard"
    num_users: int = 1
    base_price: Decimal = Decimal("0")
    subscription_start: date | None = None
    subscription_end: date | None = None


@strawberry.input
class UpdateFirmInput:
    """Partial update; fields left out are unchanged."""

    name: str | None = None
    email: str | None = None
    street_address: str | None = None
    city: str | None = None
    cc_emails: str | None = None
    bcc_emails: str | None = None
    include_default_bcc: bool | None = None
    plan_type: str | None = None
    num_users: int | None = None
    base_price: Decimal | None = None
    subscription_start: date | None = None
    subscription_end: date | None = None


@strawberry.type
class FirmResult:
    success: bool
    error: str | None = None
    firm: FirmType | None = None


def _validation_message(e: ValidationError) -> str:
    if hasattr(e, "message_dict"):
        return "; ".join(
            f"{field}: {' '.join(messages)}" if field != "__all__" else " ".join(messages)
            for field, messages in e.message_dict.items()
        )
    return " ".join(e.messages)


def _apply_input(firm: Firm, data: dict) -> Firm:
    """Copy input values onto a firm, normalize email fields and validate."""
    for name, value in data.items():
        if name in ("cc_emails", "bcc_emails"):
            value = normalize_emails(value)
        elif name == "email":
            value = value.strip().lower()
        elif name in ("name", "street_address", "city"):
            value = value.strip()
        setattr(firm, name, value)
    firm.full_clean()
    firm.save()
    return firm


@strawberry.type
class FirmQuery:
    @strawberry.field
    def firms(self, info: Info[Context, None], search: str | None = None) -> list[FirmType]:
        """List firms, optionally filtered by name, email or city."""
        get_current_user(info)
        queryset = Firm.objects.all()
        if search:
            queryset = queryset.filter(
                Q(name__icontains=search)
                | Q(email__icontains=search)
                | Q(city__icontains=search)
            )
        return list(queryset)

    @strawberry.field
    def firm(self, info: Info[Context, None], id: strawberry.ID) -> FirmType | None:
        get_current_user(info)
        return Firm.objects.filter(id=id).first()


@strawberry.type
class FirmMutation:
    @strawberry.mutation
    def create_firm(self, info: Info[Context, None], input: FirmInput) -> FirmResult:
        _, err = check_auth(info)
        if err:
            return FirmResult(success=False, error=err)

        try:
            firm = _apply_input(Firm(), asdict(input))
        except ValidationError as e:
            return FirmResult(success=False, error=_validation_message(e))
        return FirmResult(success=True, firm=firm)

    @strawberry.mutation
    def update_firm(
        self,
        info: Info[Context, None],
        id: strawberry.ID,
        input: UpdateFirmInput,
    ) -> FirmResult:
        _, err = check_auth(info)
        if err:
            return FirmResult(success=False, error=err)

        firm = Firm.objects.filter(id=id).first()
        if not firm:
            return FirmResult(success=False, error="Law firm not found")

        data = {k: v for k, v in asdict(input).items() if v is not None}
        try:
            firm = _apply_input(firm, data)
        except ValidationError as e:
            return FirmResult(success=False, error=_validation_message(e))
        return FirmResult(success=True, firm=firm)

    @strawberry.mutation
    def delete_firm(self, info: Info[Context, None], id: strawberry.ID) -> DeleteResult:
        """Delete a firm. Refused while invoices or scheduled invoices reference it."""
        _, err = check_auth(info)
        if err:
            return DeleteResult(success=False, error=err)

        firm = Firm.objects.filter(id=id).first()
        if not firm:
            return DeleteResult(success=False, error="Law firm not found")

        try:
            firm.delete()
        except ProtectedError:
            return DeleteResult(
                success=False,
                error="Cannot delete a firm that has invoices or scheduled invoices",
            )
        return DeleteResult(success=True)
