"""REST views for invoice documents."""
import json
from datetime import date

from django.http import HttpResponse, JsonResponse
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt

from apps.core.permissions import get_current_user_from_request
from apps.firms.models import normalize_emails
from apps.invoices.exceptions import (
    DeliveryFailure,
    InvoicingError,
    NotFound,
    RenderFailure,
)
from apps.invoices.rendering import DocumentFormat
from apps.invoices.services import InvoiceService, parse_amount
from apps.invoices.types import InvoiceRequest, RenderedDocument


def _error_status(error: InvoicingError) -> int:
    if isinstance(error, NotFound):
        return 404
    if isinstance(error, (RenderFailure, DeliveryFailure)):
        return 502
    return 400


def _parse_format(request, default: str) -> DocumentFormat | None:
    try:
        return DocumentFormat(request.GET.get("format", default))
    except ValueError:
        return None


def _file_response(document: RenderedDocument) -> HttpResponse:
    response = HttpResponse(document.buffer, content_type=document.content_type)
    response["Content-Disposition"] = f'attachment; filename="{document.filename}"'
    response["Content-Length"] = document.size
    return response


@method_decorator(csrf_exempt, name="dispatch")
class InvoiceGenerateView(View):
    """REST endpoint that generates an invoice and returns the document."""

    def post(self, request):
        """
        Generate an invoice from a JSON body.

        Body: firm_id (required), plan_type, duration, num_users,
        base_amount, due_date (YYYY-MM-DD).
        Query parameters:
            format: "docx" (default) or "pdf"

        Returns:
            The document, with X-Invoice-Number and X-Invoice-Id headers.
        """
        user = get_current_user_from_request(request)
        if not user:
            return JsonResponse({"error": "Authentication required"}, status=401)

        fmt = _parse_format(request, DocumentFormat.DOCX.value)
        if fmt is None:
            return JsonResponse({"error": "format must be one of: docx, pdf"}, status=400)

        try:
            body = json.loads(request.body or b"{}")
        except json.JSONDecodeError:
            return JsonResponse({"error": "Invalid JSON body"}, status=400)

        if not body.get("firm_id"):
            return JsonResponse({"error": "firm_id is required"}, status=400)

        try:
            invoice_request = InvoiceRequest(
                firm_id=body["firm_id"],
                plan_type=body.get("plan_type", ""),
                duration=body.get("duration", "12 months"),
                num_users=int(body["num_users"]) if body.get("num_users") else None,
                base_amount=(
                    parse_amount(body["base_amount"])
                    if body.get("base_amount") not in (None, "")
                    else None
                ),
                due_date=(
                    date.fromisoformat(body["due_date"]) if body.get("due_date") else None
                ),
                cc_emails=normalize_emails(body.get("cc_emails")),
            )
        except (TypeError, ValueError, InvoicingError) as e:
            return JsonResponse({"error": f"Invalid input: {e}"}, status=400)

        try:
            generated = InvoiceService().generate(invoice_request, fmt)
        except InvoicingError as e:
            return JsonResponse({"error": str(e)}, status=_error_status(e))

        response = _file_response(generated.document)
        response["X-Invoice-Number"] = generated.invoice.invoice_number
        response["X-Invoice-Id"] = str(generated.invoice.id)
        return response


@method_decorator(csrf_exempt, name="dispatch")
class InvoiceDownloadView(View):
    """REST endpoint that re-renders a stored invoice."""

    def get(self, request, invoice_id: int):
        user = get_current_user_from_request(request)
        if not user:
            return JsonResponse({"error": "Authentication required"}, status=401)

        fmt = _parse_format(request, DocumentFormat.DOCX.value)
        if fmt is None:
            return JsonResponse({"error": "format must be one of: docx, pdf"}, status=400)

        try:
            document = InvoiceService().render_existing(invoice_id, fmt)
        except InvoicingError as e:
            return JsonResponse({"error": str(e)}, status=_error_status(e))

        return _file_response(document)
