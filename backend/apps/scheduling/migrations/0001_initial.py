from decimal import Decimal

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("firms", "0001_initial"),
        ("invoices", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="SchedulerSettings",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("enabled", models.BooleanField(default=True, help_text="When off, the periodic task skips processing")),
                ("last_run_at", models.DateTimeField(blank=True, null=True)),
                ("last_run_processed", models.IntegerField(default=0)),
                ("last_run_errors", models.IntegerField(default=0)),
            ],
            options={
                "verbose_name": "Scheduler Settings",
                "verbose_name_plural": "Scheduler Settings",
            },
        ),
        migrations.CreateModel(
            name="ScheduledInvoice",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("schedule_date", models.DateField(db_index=True)),
                ("plan_type", models.CharField(choices=[("standard", "Standard"), ("plus", "Plus")], default="standard", max_length=20)),
                ("duration", models.CharField(default="12 months", max_length=50)),
                ("num_users", models.IntegerField(default=1)),
                ("base_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("status", models.CharField(choices=[("pending", "Pending"), ("executed", "Executed"), ("failed", "Failed")], db_index=True, default="pending", max_length=10)),
                ("executed_at", models.DateTimeField(blank=True, null=True)),
                ("error_message", models.TextField(blank=True)),
                ("firm", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="scheduled_invoices", to="firms.firm")),
                ("invoice", models.ForeignKey(blank=True, help_text="Invoice generated when this entry was executed", null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="scheduled_entries", to="invoices.invoice")),
            ],
            options={
                "ordering": ["schedule_date", "id"],
            },
        ),
    ]
