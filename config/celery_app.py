"""
Celery configuration for ViniPlay DVR

Les tâches Celery ne pilotent jamais les enregistrements : le moteur DVR vit
dans le processus web. Seules les tâches de maintenance passent par ici.
"""
import os
from celery import Celery
from celery.schedules import crontab

# Set default Django settings
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

app = Celery('viniplay')

# Load config from Django settings with CELERY namespace
app.config_from_object('django.conf:settings', namespace='CELERY')

# Auto-discover tasks in all installed apps
app.autodiscover_tasks()

# Periodic tasks
app.conf.beat_schedule = {
    'check-dvr-storage-health': {
        'task': 'apps.recorder.tasks.check_storage_health',
        'schedule': crontab(minute='*/30'),  # Toutes les 30 minutes
    },
}
