"""REST endpoint for triggering scheduled invoice processing from a cron."""
import hmac

from django.conf import settings
from django.http import JsonResponse
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt

from apps.scheduling.tasks import process_scheduled_invoices_task


def _authorized(request) -> bool:
    secret = settings.CRON_SECRET
    if not secret:
        return True
    header = request.headers.get("Authorization", "")
    return hmac.compare_digest(header, f"Bearer {secret}")


@method_decorator(csrf_exempt, name="dispatch")
class ProcessScheduledCronView(View):
    """Runs the scheduled invoice batch inline. Protected by CRON_SECRET when set."""

    def post(self, request):
        if not _authorized(request):
            return JsonResponse({"error": "Unauthorized"}, status=401)

        result = process_scheduled_invoices_task()
        return JsonResponse({"success": True, **result})

    def get(self, request):
        return self.post(request)
