"""
Settings for the standalone Click relay process.

    DJANGO_SETTINGS_MODULE=config.relay_settings gunicorn config.wsgi

The relay keeps no state, so it runs without a database and without the
storefront apps.
"""
from .settings import *

INSTALLED_APPS = [
    'rest_framework',
    'relay',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.middleware.common.CommonMiddleware',
]

ROOT_URLCONF = 'relay.urls'

DATABASES = {}

# Click posts without a trailing slash
APPEND_SLASH = False
