from django.contrib import admin

from .models import EmailConfiguration, Invoice


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    list_display = ["invoice_number", "firm", "plan_type", "total", "due_date", "status", "sent_at"]
    list_filter = ["status", "plan_type"]
    search_fields = ["invoice_number", "firm__name"]
    raw_id_fields = ["firm"]
    readonly_fields = ["subtotal", "getfund_levy", "nhil_levy", "vat", "total", "sent_at", "paid_at"]


@admin.register(EmailConfiguration)
class EmailConfigurationAdmin(admin.ModelAdmin):
    list_display = ["smtp_host", "smtp_port", "from_email"]
    exclude = ["smtp_password"]
