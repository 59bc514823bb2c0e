from celery import Celery
import os

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

app = Celery('config')
app.config_from_object('django.conf:settings', namespace='CELERY')
app.autodiscover_tasks()


#  CELERY BEAT SCHEDULE
app.conf.beat_schedule = {
    'retry-click-completions-every-minute': {
        'task': 'clickuz.tasks.retry_pending_completions',
        'schedule': 60.0,
    },
}

app.conf.timezone = 'UTC'
