"""Django settings for the Inventario project.

All deployment specific values are read from environment variables, with
defaults suitable for local development.
"""

import os
import sys
from pathlib import Path

import dj_database_url
import structlog

BASE_DIR = Path(__file__).resolve().parent.parent

TESTING = 'test' in sys.argv or 'pytest' in sys.modules or 'INVENTARIO_TESTING' in os.environ


def get_boolean_setting(name: str, default: bool = False) -> bool:
    """Read a boolean flag from the environment."""
    value = os.environ.get(name)

    if value is None:
        return default

    return value.strip().lower() in ('1', 'y', 'yes', 't', 'true', 'on')


def get_list_setting(name: str, default=None) -> list:
    """Read a comma separated list from the environment."""
    value = os.environ.get(name)

    if value is None:
        return list(default or [])

    return [v.strip() for v in value.split(',') if v.strip()]


# === Security ===
SECRET_KEY = os.environ.get(
    'INVENTARIO_SECRET_KEY', 'django-insecure-inventario-development-key'
)
DEBUG = get_boolean_setting('INVENTARIO_DEBUG', default=True)
ALLOWED_HOSTS = get_list_setting('INVENTARIO_ALLOWED_HOSTS', ['localhost', '127.0.0.1'])

# === Applications ===
INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'rest_framework',
    'django_filters',
    'django_q',
    'users.apps.UsersConfig',
    'stock.apps.StockConfig',
    'loan.apps.LoanConfig',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'Inventario.urls'
WSGI_APPLICATION = 'Inventario.wsgi.application'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ]
        },
    }
]

# === Database ===
DATABASES = {
    'default': dj_database_url.config(
        default=f'sqlite:///{BASE_DIR / "db.sqlite3"}', conn_max_age=600
    )
}

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

AUTH_USER_MODEL = 'users.User'

AUTH_PASSWORD_VALIDATORS = [
    {'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator'},
    {'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator'},
    {'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator'},
    {'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator'},
]

# === Language and time zone ===
LANGUAGE_CODE = os.environ.get('INVENTARIO_LANGUAGE', 'es-co')
TIME_ZONE = os.environ.get('INVENTARIO_TIMEZONE', 'America/Bogota')
USE_I18N = True
USE_TZ = True

STATIC_URL = '/static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'

# === REST framework ===
REST_FRAMEWORK = {
    'EXCEPTION_HANDLER': 'Inventario.exceptions.exception_handler',
    'DEFAULT_AUTHENTICATION_CLASSES': (
        'rest_framework.authentication.BasicAuthentication',
        'rest_framework.authentication.SessionAuthentication',
    ),
    'DEFAULT_PERMISSION_CLASSES': ('rest_framework.permissions.IsAuthenticated',),
    'DEFAULT_FILTER_BACKENDS': ('django_filters.rest_framework.DjangoFilterBackend',),
}

# === Background worker ===
Q_CLUSTER = {
    'name': 'inventario',
    'workers': int(os.environ.get('INVENTARIO_BACKGROUND_WORKERS', 2)),
    'timeout': 90,
    'retry': 120,
    'max_attempts': 1,
    'orm': 'default',
    'sync': TESTING or get_boolean_setting('INVENTARIO_BACKGROUND_SYNC'),
}

# === Email ===
EMAIL_BACKEND = os.environ.get(
    'INVENTARIO_EMAIL_BACKEND', 'django.core.mail.backends.smtp.EmailBackend'
)
EMAIL_HOST = os.environ.get('INVENTARIO_EMAIL_HOST', 'localhost')
EMAIL_PORT = int(os.environ.get('INVENTARIO_EMAIL_PORT', 25))
EMAIL_HOST_USER = os.environ.get('INVENTARIO_EMAIL_USERNAME', '')
EMAIL_HOST_PASSWORD = os.environ.get('INVENTARIO_EMAIL_PASSWORD', '')
EMAIL_USE_TLS = get_boolean_setting('INVENTARIO_EMAIL_TLS')
EMAIL_TIMEOUT = int(os.environ.get('INVENTARIO_EMAIL_TIMEOUT', 10))
DEFAULT_FROM_EMAIL = os.environ.get(
    'INVENTARIO_EMAIL_SENDER', 'Inventario <no-reply@inventario.local>'
)

# When set, every loan email is delivered to this address instead
LOAN_EMAIL_REDIRECT_TO = os.environ.get('LOAN_EMAIL_REDIRECT_TO', '')
LOAN_EMAIL_RETRIES = int(os.environ.get('LOAN_EMAIL_RETRIES', 2))
LOAN_EMAIL_RETRY_BACKOFF = float(os.environ.get('LOAN_EMAIL_RETRY_BACKOFF', 2))
LOAN_NOTIFY_EXCLUDED_DOMAINS = get_list_setting(
    'LOAN_NOTIFY_EXCLUDED_DOMAINS', ['demo.com', 'test.com']
)
LOAN_REMINDER_DAYS = int(os.environ.get('LOAN_REMINDER_DAYS', 1))

# === Logging ===
LOG_LEVEL = os.environ.get('INVENTARIO_LOG_LEVEL', 'WARNING' if TESTING else 'INFO').upper()

structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt='iso'),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ],
    logger_factory=structlog.stdlib.LoggerFactory(),
    wrapper_class=structlog.stdlib.BoundLogger,
    cache_logger_on_first_use=True,
)

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'console': {
            '()': structlog.stdlib.ProcessorFormatter,
            'processor': structlog.dev.ConsoleRenderer(colors=False),
        },
        'json': {
            '()': structlog.stdlib.ProcessorFormatter,
            'processor': structlog.processors.JSONRenderer(),
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'json' if get_boolean_setting('INVENTARIO_JSON_LOG') else 'console',
        }
    },
    'root': {'handlers': ['console'], 'level': LOG_LEVEL},
    'loggers': {
        'inventario': {'handlers': ['console'], 'level': LOG_LEVEL, 'propagate': False},
        'django_q': {'handlers': ['console'], 'level': LOG_LEVEL, 'propagate': False},
    },
}
