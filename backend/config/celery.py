"""Celery configuration for background task processing."""

import os

from celery import Celery

# Set the default Django settings module
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.local")

app = Celery("firm_invoicing")

# Load config from Django settings with CELERY_ prefix
# (includes CELERY_BEAT_SCHEDULE for the daily scheduled-invoice run)
app.config_from_object("django.conf:settings", namespace="CELERY")

# Auto-discover tasks in all installed apps
app.autodiscover_tasks()
