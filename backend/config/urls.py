"""URL configuration for the firm-invoicing project."""
from django.contrib import admin
from django.http import JsonResponse
from django.urls import path
from django.views.decorators.csrf import csrf_exempt

from apps.core.context import AuthenticatedGraphQLView
from apps.invoices.views import InvoiceDownloadView, InvoiceGenerateView
from apps.scheduling.views import ProcessScheduledCronView
from .schema import schema


def health_check(request):
    return JsonResponse({"status": "ok"})


urlpatterns = [
    path("admin/", admin.site.urls),
    path("graphql", csrf_exempt(AuthenticatedGraphQLView.as_view(schema=schema))),
    path("api/health", health_check),
    path("api/invoices/generate/", InvoiceGenerateView.as_view(), name="invoice-generate"),
    path("api/invoices/<int:invoice_id>/download/", InvoiceDownloadView.as_view(), name="invoice-download"),
    path("api/cron/process-scheduled/", ProcessScheduledCronView.as_view(), name="cron-process-scheduled"),
]
