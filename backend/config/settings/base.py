"""Base settings for the firm-invoicing project."""
from pathlib import Path

import environ
from celery.schedules import crontab

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent.parent

# Environment
env = environ.Env(
    DEBUG=(bool, False),
)

# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = env("DJANGO_SECRET_KEY")

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = env.bool("DJANGO_DEBUG", default=False)

ALLOWED_HOSTS = env.list("DJANGO_ALLOWED_HOSTS", default=[])

# Application definition
DJANGO_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
]

THIRD_PARTY_APPS = [
    "strawberry_django",
    "corsheaders",
    "auditlog",
]

LOCAL_APPS = [
    "apps.core",
    "apps.users",
    "apps.firms",
    "apps.invoices",
    "apps.scheduling",
]

INSTALLED_APPS = DJANGO_APPS + THIRD_PARTY_APPS + LOCAL_APPS

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "corsheaders.middleware.CorsMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
    "auditlog.middleware.AuditlogMiddleware",
]

ROOT_URLCONF = "config.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "config.wsgi.application"

# Database
DATABASES = {
    "default": env.db("DATABASE_URL"),
}

# Password validation
AUTH_PASSWORD_VALIDATORS = [
    {"NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator"},
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator"},
    {"NAME": "django.contrib.auth.password_validation.CommonPasswordValidator"},
    {"NAME": "django.contrib.auth.password_validation.NumericPasswordValidator"},
]

# Custom user model
AUTH_USER_MODEL = "users.User"

# Internationalization
LANGUAGE_CODE = "en-us"
TIME_ZONE = env("TIME_ZONE", default="Africa/Accra")
USE_I18N = True
USE_TZ = True

# Static files (CSS, JavaScript, Images)
STATIC_URL = "/static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

# Default primary key field type
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# Auditlog
AUDITLOG_INCLUDE_ALL_MODELS = True

# Cache
CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.redis.RedisCache",
        "LOCATION": env("REDIS_URL", default="redis://localhost:6379/0"),
    }
}

# Email: SMTP credentials live in the EmailConfiguration row, the backend
# class is configurable so development can print to the console.
EMAIL_BACKEND = env(
    "EMAIL_BACKEND", default="django.core.mail.backends.smtp.EmailBackend"
)
EMAIL_TIMEOUT = env.int("EMAIL_TIMEOUT", default=30)

# Invoicing
INVOICE_NUMBER_PREFIX = env("INVOICE_NUMBER_PREFIX", default="JUDY")
INVOICE_PAYMENT_TERM_DAYS = env.int("INVOICE_PAYMENT_TERM_DAYS", default=30)
INVOICE_CURRENCY = env("INVOICE_CURRENCY", default="GHS")
INVOICE_DEFAULT_BCC = env.list("INVOICE_DEFAULT_BCC", default=[])
INVOICE_TEMPLATE_DIR = Path(
    env("INVOICE_TEMPLATE_DIR", default=str(BASE_DIR / "templates" / "docx"))
)
INVOICE_DOCX_TEMPLATES = {
    "standard": "Standard_Template.docx",
    "plus": "Plus_Template.docx",
}
INVOICE_ISSUER = {
    "name": env("INVOICE_ISSUER_NAME", default="JUDY Legal Research"),
    "legal_name": env("INVOICE_ISSUER_LEGAL_NAME", default="JUDY INNOVATIVE TECH LTD"),
    "address_lines": env.list(
        "INVOICE_ISSUER_ADDRESS",
        default=["19 Banana Street, East Legon", "Accra, Ghana"],
    ),
    "bank_name": env("INVOICE_BANK_NAME", default="Guaranty Trust Bank"),
    "bank_address": env("INVOICE_BANK_ADDRESS", default="Lagos Avenue, East Legon, Accra"),
    "account_name": env("INVOICE_ACCOUNT_NAME", default="JUDY INNOVATIVE TECH LTD"),
    "account_number": env("INVOICE_ACCOUNT_NUMBER", default=""),
}

# Scheduled invoices
SCHEDULE_LEAD_DAYS = env.int("SCHEDULE_LEAD_DAYS", default=30)
CRON_SECRET = env("CRON_SECRET", default="")

# JWT sessions
JWT_ACCESS_TOKEN_HOURS = env.int("JWT_ACCESS_TOKEN_HOURS", default=24)
JWT_REFRESH_TOKEN_DAYS = env.int("JWT_REFRESH_TOKEN_DAYS", default=7)

# Strawberry GraphQL
STRAWBERRY_DJANGO = {
    "FIELD_DESCRIPTION_FROM_HELP_TEXT": True,
    "TYPE_DESCRIPTION_FROM_MODEL_DOCSTRING": True,
}

# Celery configuration
CELERY_BROKER_URL = env("REDIS_URL", default="redis://localhost:6379/0")
CELERY_RESULT_BACKEND = env("REDIS_URL", default="redis://localhost:6379/0")
CELERY_ACCEPT_CONTENT = ["json"]
CELERY_TASK_SERIALIZER = "json"
CELERY_RESULT_SERIALIZER = "json"
CELERY_TIMEZONE = TIME_ZONE
CELERY_TASK_ACKS_LATE = True  # Ensure tasks aren't lost on worker crash
CELERY_TASK_REJECT_ON_WORKER_LOST = True
CELERY_BEAT_SCHEDULE = {
    "process-scheduled-invoices": {
        "task": "apps.scheduling.tasks.process_scheduled_invoices_task",
        "schedule": crontab(hour=8, minute=0),
    },
}

# Logging
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "[{asctime}] {levelname} {name}: {message}",
            "style": "{",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "loggers": {
        "apps": {
            "handlers": ["console"],
            "level": env("APP_LOG_LEVEL", default="INFO"),
            "propagate": False,
        },
    },
}
