import json
import shutil

import pytest
from rest_framework.test import APIClient

from apps.recorder import engine as engine_module
from apps.recorder.engine import DvrEngine
from apps.recorder.models import DvrJob
from apps.recorder.recorder import DvrRecorder
from apps.recorder.registry import ProcessRegistry
from apps.recorder.scheduler import DvrScheduler


SH = shutil.which('sh') or '/bin/sh'

PLAYLIST = """#EXTM3U
#EXTINF:-1 tvg-id="news.fr" tvg-name="News" tvg-logo="http://logo/news.png" group-title="Info",News HD
http://streams.example.com/news.ts
#EXTINF:-1 tvg-id="sport.fr" group-title="Sport",Sport 1
http://streams.example.com/sport.ts
"""


class FakeTimer:
    """Remplace threading.Timer : rien ne part tant que fire() n'est pas appelé"""

    def __init__(self, interval, function, args=()):
        self.interval = interval
        self.function = function
        self.args = args
        self.daemon = False
        self.started = False
        self.cancelled = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        self.function(*self.args)


class FakeTimerFactory:

    def __init__(self):
        self.timers = []

    def __call__(self, interval, function, args=()):
        timer = FakeTimer(interval, function, args)
        self.timers.append(timer)
        return timer

    def active(self):
        return [t for t in self.timers if t.started and not t.cancelled]


def run_inline(target, *args):
    target(*args)


class DeferredRunner:
    """Garde les tâches de fond pour les exécuter plus tard dans le test"""

    def __init__(self):
        self.pending = []

    def __call__(self, target, *args):
        self.pending.append((target, args))

    def run_all(self):
        pending, self.pending = self.pending, []
        for target, args in pending:
            target(*args)


def make_job(owner, start, end, channel_id='news.fr', program_title='Journal', **fields):
    """Crée un job directement en base, avec le profil de test"""
    fields.setdefault('status', DvrJob.STATUS_SCHEDULED)
    fields.setdefault('profile_id', 'test-profile')
    fields.setdefault('user_agent_id', 'ua-1')
    return DvrJob.objects.create(
        owner=owner,
        channel_id=channel_id,
        channel_name='News HD',
        program_title=program_title,
        start_time=start,
        end_time=end,
        **fields
    )


def write_preferences(path, command, pre=0, post=0):
    data = {
        'userAgents': [{'id': 'ua-1', 'name': 'Test', 'value': 'TestAgent/1.0'}],
        'activeUserAgentId': 'ua-1',
        'dvr': {
            'preBufferMinutes': pre,
            'postBufferMinutes': post,
            'activeRecordingProfileId': 'test-profile',
            'recordingProfiles': [{'id': 'test-profile', 'name': 'Test', 'command': command}],
        },
    }
    path.write_text(json.dumps(data), encoding='utf-8')


@pytest.fixture
def dvr_paths(settings, tmp_path):
    settings.DATA_DIR = tmp_path / 'data'
    settings.DVR_ROOT = tmp_path / 'dvr'
    settings.DVR_SETTINGS_PATH = settings.DATA_DIR / 'settings.json'
    settings.MERGED_M3U_PATH = settings.DATA_DIR / 'playlist.m3u'
    settings.DATA_DIR.mkdir()
    settings.DVR_ROOT.mkdir()
    settings.MERGED_M3U_PATH.write_text(PLAYLIST, encoding='utf-8')
    return settings


@pytest.fixture
def profile(dvr_paths):
    """Écrit un profil d'enregistrement ; par défaut un processus qui produit 8 octets"""
    def _write(command=SH + ' -c "printf abcdefgh > {filePath}"', pre=0, post=0):
        write_preferences(dvr_paths.DVR_SETTINGS_PATH, command, pre=pre, post=post)
    _write()
    return _write


@pytest.fixture
def timers():
    return FakeTimerFactory()


@pytest.fixture
def registry():
    return ProcessRegistry(grace_seconds=0)


@pytest.fixture
def dvr_engine(dvr_paths, profile, registry, timers, monkeypatch):
    recorder = DvrRecorder(registry, run_in_background=run_inline)
    scheduler = DvrScheduler(recorder, registry, timer_factory=timers)
    engine = DvrEngine(registry=registry, recorder=recorder, scheduler=scheduler)
    monkeypatch.setattr(engine_module, '_dvr_engine', engine)
    return engine


@pytest.fixture
def user(django_user_model):
    return django_user_model.objects.create_user(username='alice', password='secret-pass')


@pytest.fixture
def other_user(django_user_model):
    return django_user_model.objects.create_user(username='bob', password='secret-pass')


@pytest.fixture
def api_client(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client
