from decimal import Decimal

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Firm",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=255)),
                ("street_address", models.CharField(blank=True, max_length=255)),
                ("city", models.CharField(blank=True, max_length=255)),
                ("email", models.EmailField(help_text="Primary billing contact", max_length=254)),
                ("cc_emails", models.JSONField(blank=True, default=list, help_text="Additional recipients copied on invoice emails")),
                ("bcc_emails", models.JSONField(blank=True, default=list, help_text="Recipients blind-copied on invoice emails")),
                ("include_default_bcc", models.BooleanField(default=True, help_text="Also blind-copy the addresses in INVOICE_DEFAULT_BCC")),
                ("plan_type", models.CharField(choices=[("standard", "Standard"), ("plus", "Plus")], default="standard", max_length=20)),
                ("num_users", models.PositiveIntegerField(default=1)),
                ("base_price", models.DecimalField(decimal_places=2, default=Decimal("0.00"), help_text="Price per user for the subscription period", max_digits=12)),
                ("subscription_start", models.DateField(blank=True, null=True)),
                ("subscription_end", models.DateField(blank=True, null=True)),
            ],
            options={
                "ordering": ["name"],
            },
        ),
    ]
