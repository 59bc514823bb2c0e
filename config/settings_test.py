from .settings import *

DEBUG = False

SECRET_KEY = 'test-secret-key'

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

ALLOWED_HOSTS = ['testserver']

PAYMEUZ_SETTINGS = {
    **PAYMEUZ_SETTINGS,
    'MERCHANT_ID': '65f0c0ffee0000000000abcd',
    'KEY': 'payme-test-key',
    'TEST_KEY': '',
    'ADDITIONAL_KEYS': [],
    'CHECK_IP': False,
}

CLICK_SETTINGS = {
    **CLICK_SETTINGS,
    'SERVICE_ID': '31234',
    'MERCHANT_ID': '22345',
    'SECRET_KEY': 'click-test-secret',
    'CHECK_SIGN': True,
    'UPSTREAM_URL': 'http://upstream.test/api/click/',
    'RELAY_TIMEOUT': 5,
}

TELEGRAM_BOT_TOKEN = ''

CELERY_BROKER_URL = 'memory://'
CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = False

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'handlers': {
        'null': {'class': 'logging.NullHandler'},
    },
    'root': {
        'handlers': ['null'],
        'level': 'DEBUG',
    },
}
