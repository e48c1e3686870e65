import os
from celery import Celery

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'ontrack.settings')
app = Celery('ontrack')
# Beat schedule (automation poller) lives in settings.CELERY_BEAT_SCHEDULE
app.config_from_object('django.conf:settings', namespace='CELERY')
app.autodiscover_tasks()
