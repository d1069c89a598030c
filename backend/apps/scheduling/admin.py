from django.contrib import admin

from .models import ScheduledInvoice, SchedulerSettings


@admin.register(ScheduledInvoice)
class ScheduledInvoiceAdmin(admin.ModelAdmin):
    list_display = ["firm", "schedule_date", "plan_type", "num_users", "base_amount", "status", "executed_at"]
    list_filter = ["status", "plan_type"]
    search_fields = ["firm__name"]
    raw_id_fields = ["firm", "invoice"]
    readonly_fields = ["executed_at", "error_message", "invoice"]


@admin.register(SchedulerSettings)
class SchedulerSettingsAdmin(admin.ModelAdmin):
    list_display = ["enabled", "last_run_at", "last_run_processed", "last_run_errors"]
