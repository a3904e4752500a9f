from django.apps import AppConfig


class RecorderConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.recorder'
    verbose_name = 'Enregistreur DVR'
