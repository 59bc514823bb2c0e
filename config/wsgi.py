"""
WSGI config for config project.

The Click relay runs from the same module with
``DJANGO_SETTINGS_MODULE=config.relay_settings``.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

application = get_wsgi_application()
