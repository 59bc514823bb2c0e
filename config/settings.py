"""
Django settings for the Ailem market payment backend.

Values that differ per deployment are read from the environment; a local
``.env`` file is loaded first when present.
"""
import os
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent

load_dotenv(BASE_DIR / '.env')


def env_bool(name, default=False):
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def env_list(name, default=''):
    return [item.strip() for item in os.getenv(name, default).split(',') if item.strip()]


SECRET_KEY = os.getenv('DJANGO_SECRET_KEY', 'django-insecure-change-me')

DEBUG = env_bool('DJANGO_DEBUG', False)

ALLOWED_HOSTS = env_list('DJANGO_ALLOWED_HOSTS', 'localhost,127.0.0.1')

INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',

    'rest_framework',
    'drf_yasg',

    'config',
    'account',
    'shop',
    'paymeuz',
    'clickuz',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
    'paymeuz.middleware.PaymentSecurityMiddleware',
]

ROOT_URLCONF = 'config.urls'

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
            ],
        },
    },
]

WSGI_APPLICATION = 'config.wsgi.application'
ASGI_APPLICATION = 'config.asgi.application'

if os.getenv('DB_NAME'):
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.postgresql',
            'NAME': os.getenv('DB_NAME'),
            'USER': os.getenv('DB_USER', ''),
            'PASSWORD': os.getenv('DB_PASSWORD', ''),
            'HOST': os.getenv('DB_HOST', 'localhost'),
            'PORT': os.getenv('DB_PORT', '5432'),
        }
    }
else:
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.sqlite3',
            'NAME': BASE_DIR / 'db.sqlite3',
        }
    }

AUTH_USER_MODEL = 'account.UserModel'

AUTH_PASSWORD_VALIDATORS = [
    {'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator'},
    {'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator'},
    {'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator'},
    {'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator'},
]

LANGUAGE_CODE = 'uz'
LANGUAGES = (
    ('uz', 'Uzbek'),
    ('ru', 'Russian'),
    ('en', 'English'),
)
TIME_ZONE = 'Asia/Tashkent'
USE_I18N = True
USE_TZ = True

STATIC_URL = '/static/'
STATIC_ROOT = BASE_DIR / 'static'

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

REST_FRAMEWORK = {
    'DEFAULT_RENDERER_CLASSES': (
        'rest_framework.renderers.JSONRenderer',
    ),
    'DEFAULT_PARSER_CLASSES': (
        'rest_framework.parsers.JSONParser',
        'rest_framework.parsers.FormParser',
        'rest_framework.parsers.MultiPartParser',
    ),
    # Gateways authenticate per protocol, not with sessions or tokens
    'DEFAULT_AUTHENTICATION_CLASSES': [],
    'DEFAULT_PERMISSION_CLASSES': [
        'rest_framework.permissions.AllowAny',
    ],
    'UNAUTHENTICATED_USER': None,
    # reverse proxies in front of the app; the client is the hop they appended to X-Forwarded-For
    'NUM_PROXIES': int(os.getenv('NUM_PROXIES', 0)),
}

SWAGGER_SETTINGS = {
    'SECURITY_DEFINITIONS': {
        'Basic': {'type': 'basic'},
    },
}

# Payme merchant API
PAYMEUZ_SETTINGS = {
    'MERCHANT_ID': os.getenv('PAYME_MERCHANT_ID', ''),
    'KEY': os.getenv('PAYME_KEY', ''),
    'TEST_KEY': os.getenv('PAYME_TEST_KEY', ''),
    'ADDITIONAL_KEYS': env_list('PAYME_ADDITIONAL_KEYS'),
    'TEST_ENV': env_bool('PAYME_TEST_MODE', True),
    'CHECK_IP': env_bool('PAYME_CHECK_IP', False),
    'ALLOWED_IPS': env_list(
        'PAYME_ALLOWED_IPS',
        '185.178.208.0/22,195.158.31.0/24,195.158.28.0/23,195.158.30.0/23',
    ),
    'CALLBACK_PATH': '/api/payme/',
    # 12 hours, in milliseconds
    'TRANSACTION_TIMEOUT': int(os.getenv('PAYME_TRANSACTION_TIMEOUT', 43_200_000)),
}

# Click shop API
CLICK_SETTINGS = {
    'SERVICE_ID': os.getenv('CLICK_SERVICE_ID', ''),
    'MERCHANT_ID': os.getenv('CLICK_MERCHANT_ID', ''),
    'MERCHANT_USER_ID': os.getenv('CLICK_MERCHANT_USER_ID', ''),
    'SECRET_KEY': os.getenv('CLICK_SECRET_KEY', ''),
    'CHECK_SIGN': env_bool('CLICK_CHECK_SIGN', True),
    'UPSTREAM_URL': os.getenv('CLICK_UPSTREAM_URL', 'http://localhost:8000/api/click/'),
    'RELAY_TIMEOUT': float(os.getenv('CLICK_RELAY_TIMEOUT', 15)),
    'RETRY_AFTER_SECONDS': int(os.getenv('CLICK_RETRY_AFTER_SECONDS', 60)),
    'MAX_ATTEMPTS': int(os.getenv('CLICK_MAX_ATTEMPTS', 10)),
}

TELEGRAM_BOT_TOKEN = os.getenv('TELEGRAM_BOT_TOKEN', '')
TELEGRAM_TIMEOUT = float(os.getenv('TELEGRAM_TIMEOUT', 10))

DEFAULT_PURCHASE_BONUS_PERCENT = int(os.getenv('PURCHASE_BONUS_PERCENT', 3))

# Celery
CELERY_BROKER_URL = os.getenv('CELERY_BROKER_URL', 'redis://localhost:6379/0')
CELERY_RESULT_BACKEND = os.getenv('CELERY_RESULT_BACKEND', None)
CELERY_TASK_ALWAYS_EAGER = env_bool('CELERY_TASK_ALWAYS_EAGER', False)
CELERY_ACCEPT_CONTENT = ['json']
CELERY_TASK_SERIALIZER = 'json'
CELERY_TIMEZONE = 'UTC'

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '%(asctime)s %(levelname)s %(name)s: %(message)s',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': os.getenv('LOG_LEVEL', 'INFO'),
    },
    'loggers': {
        'django': {
            'handlers': ['console'],
            'level': 'WARNING',
            'propagate': False,
        },
    },
}
