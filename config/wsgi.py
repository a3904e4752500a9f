"""
WSGI config for ViniPlay DVR

Le moteur DVR est démarré ici, dans le processus qui sert les requêtes :
un seul processus serveur doit posséder le moteur
(ex: gunicorn --workers 1 --threads 8 config.wsgi).
"""
import atexit
import os

from django.conf import settings
from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

application = get_wsgi_application()

if settings.DVR_ENGINE_AUTOSTART:
    from apps.recorder.engine import get_dvr_engine

    engine = get_dvr_engine()
    engine.start()
    atexit.register(engine.shutdown)
