from django.contrib import admin

from .models import Firm


@admin.register(Firm)
class FirmAdmin(admin.ModelAdmin):
    list_display = ["name", "email", "plan_type", "num_users", "base_price", "subscription_end"]
    list_filter = ["plan_type"]
    search_fields = ["name", "email", "city"]
    date_hierarchy = "subscription_end"
