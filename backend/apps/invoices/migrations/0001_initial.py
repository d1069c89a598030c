import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("firms", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="EmailConfiguration",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("smtp_host", models.CharField(blank=True, max_length=255)),
                ("smtp_port", models.PositiveIntegerField(default=587)),
                ("smtp_user", models.CharField(blank=True, max_length=255)),
                ("smtp_password", models.CharField(blank=True, max_length=255)),
                ("from_email", models.EmailField(blank=True, max_length=254)),
                ("from_name", models.CharField(default="JUDY Legal Research", max_length=255)),
            ],
            options={
                "verbose_name": "Email Configuration",
                "verbose_name_plural": "Email Configuration",
            },
        ),
        migrations.CreateModel(
            name="Invoice",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("invoice_number", models.CharField(help_text="Sequential number PREFIX-YEAR-NNNN, assigned at generation", max_length=50, unique=True)),
                ("plan_type", models.CharField(choices=[("standard", "Standard"), ("plus", "Plus")], default="standard", max_length=20)),
                ("duration", models.CharField(help_text="e.g. '12 months'", max_length=50)),
                ("num_users", models.IntegerField(default=1)),
                ("base_amount", models.DecimalField(decimal_places=2, max_digits=12)),
                ("subtotal", models.DecimalField(decimal_places=2, max_digits=12)),
                ("getfund_levy", models.DecimalField(decimal_places=2, max_digits=12)),
                ("nhil_levy", models.DecimalField(decimal_places=2, max_digits=12)),
                ("vat", models.DecimalField(decimal_places=2, max_digits=12)),
                ("total", models.DecimalField(decimal_places=2, max_digits=12)),
                ("due_date", models.DateField()),
                ("status", models.CharField(choices=[("draft", "Draft"), ("sent", "Sent"), ("paid", "Paid")], default="draft", max_length=10)),
                ("sent_at", models.DateTimeField(blank=True, null=True)),
                ("paid_at", models.DateTimeField(blank=True, null=True)),
                ("firm", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="invoices", to="firms.firm")),
            ],
            options={
                "ordering": ["-created_at", "-id"],
            },
        ),
    ]
