import signal
import subprocess
from datetime import timedelta

import pytest
from django.utils import timezone

from apps.recorder import recorder as recorder_module
from apps.recorder.models import DvrJob
from apps.recorder.recorder import DvrRecorder
from apps.recorder.scheduler import DvrScheduler

from .conftest import DeferredRunner, make_job

pytestmark = pytest.mark.django_db


class SpyRecorder:

    def __init__(self):
        self.started = []

    def start_recording(self, job):
        self.started.append(job.id)


@pytest.fixture
def now():
    return timezone.now()


@pytest.fixture
def spy():
    return SpyRecorder()


@pytest.fixture
def scheduler(spy, registry, timers, now):
    return DvrScheduler(spy, registry, timer_factory=timers, clock=lambda: now)


def test_future_job_gets_start_and_stop_triggers(scheduler, timers, user, now):
    job = make_job(user, now + timedelta(minutes=10), now + timedelta(minutes=40))

    assert scheduler.schedule(job) is True

    assert scheduler.armed(job.id) == {'start', 'stop'}
    intervals = sorted(t.interval for t in timers.active())
    assert intervals == [600, 2400]


def test_schedule_twice_keeps_one_set_of_triggers(scheduler, timers, spy, user, now):
    job = make_job(user, now + timedelta(minutes=10), now + timedelta(minutes=40))
    scheduler.schedule(job)
    stale_start = timers.timers[0]

    scheduler.schedule(job)

    assert len(timers.timers) == 4
    assert len(timers.active()) == 2
    assert stale_start.cancelled

    # Un ancien déclencheur qui part quand même est ignoré
    stale_start.fire()
    assert spy.started == []

    timers.active()[0].fire()
    assert spy.started == [job.id]


def test_past_window_is_marked_error_without_triggers(scheduler, timers, spy, user, now):
    job = make_job(user, now - timedelta(hours=2), now - timedelta(hours=1))

    assert scheduler.schedule(job) is False

    job.refresh_from_db()
    assert job.status == DvrJob.STATUS_ERROR
    assert job.completed_at is not None
    assert timers.timers == []
    assert spy.started == []
    assert scheduler.armed(job.id) == set()


def test_window_already_open_starts_immediately(scheduler, timers, spy, user, now):
    job = make_job(user, now - timedelta(minutes=5), now + timedelta(minutes=25))

    scheduler.schedule(job)

    assert spy.started == [job.id]
    assert scheduler.armed(job.id) == {'stop'}
    assert [t.interval for t in timers.active()] == [1500]


def test_start_trigger_skips_job_no_longer_scheduled(scheduler, timers, spy, user, now):
    job = make_job(user, now + timedelta(minutes=10), now + timedelta(minutes=40))
    scheduler.schedule(job)
    DvrJob.objects.filter(pk=job.pk).update(status=DvrJob.STATUS_CANCELLED)

    timers.timers[0].fire()

    assert spy.started == []
    assert scheduler.armed(job.id) == {'stop'}


def test_cancel_disarms_all_triggers(scheduler, timers, user, now):
    job = make_job(user, now + timedelta(minutes=10), now + timedelta(minutes=40))
    scheduler.schedule(job)

    assert scheduler.cancel(job.id) is True
    assert scheduler.cancel(job.id) is False

    assert timers.active() == []
    assert scheduler.scheduled_job_ids() == set()


def test_stop_trigger_signals_registered_process(scheduler, timers, registry, user, now):
    job = make_job(user, now - timedelta(minutes=1), now + timedelta(minutes=30))
    scheduler.schedule(job)
    proc = subprocess.Popen(['sleep', '30'])
    try:
        registry.register(job.id, proc.pid)

        timers.active()[0].fire()

        assert proc.wait(timeout=5) == -signal.SIGTERM
        assert scheduler.armed(job.id) == set()
    finally:
        if proc.poll() is None:
            proc.kill()
            proc.wait()


def test_stop_trigger_without_process_does_nothing(scheduler, timers, user, now):
    job = make_job(user, now - timedelta(minutes=1), now + timedelta(minutes=30))
    scheduler.schedule(job)

    timers.active()[0].fire()

    job.refresh_from_db()
    assert job.status == DvrJob.STATUS_SCHEDULED
    assert scheduler.scheduled_job_ids() == set()


def test_reconcile_on_startup(scheduler, timers, spy, user, now):
    interrupted = make_job(
        user, now - timedelta(hours=1), now + timedelta(hours=1),
        status=DvrJob.STATUS_RECORDING, ffmpeg_pid=4194000,
        file_path='/tmp/dvr/interrupted.mp4',
    )
    future = make_job(user, now + timedelta(hours=1), now + timedelta(hours=2))
    expired = make_job(user, now - timedelta(hours=3), now - timedelta(hours=2))
    completed = make_job(
        user, now - timedelta(hours=5), now - timedelta(hours=4),
        status=DvrJob.STATUS_COMPLETED,
    )

    assert scheduler.reconcile_on_startup() == (1, 1)

    interrupted.refresh_from_db()
    assert interrupted.status == DvrJob.STATUS_ERROR
    assert interrupted.ffmpeg_pid is None
    assert scheduler.armed(interrupted.id) == set()

    assert scheduler.armed(future.id) == {'start', 'stop'}

    expired.refresh_from_db()
    assert expired.status == DvrJob.STATUS_ERROR

    completed.refresh_from_db()
    assert completed.status == DvrJob.STATUS_COMPLETED
    assert scheduler.scheduled_job_ids() == {future.id}
    assert spy.started == []


def test_shutdown_disarms_everything(scheduler, timers, user, now):
    for minutes in (10, 20):
        job = make_job(user, now + timedelta(minutes=minutes), now + timedelta(hours=1))
        scheduler.schedule(job)

    scheduler.shutdown()

    assert timers.active() == []
    assert scheduler.scheduled_job_ids() == set()


def test_schedule_twice_during_window_keeps_single_transcoder(dvr_paths, profile, registry, timers, user, monkeypatch):
    profile('sleep 30')
    spawned = []
    real_start_record = recorder_module.start_record

    def spawn(cmd):
        proc = real_start_record(cmd)
        spawned.append(proc)
        return proc

    monkeypatch.setattr(recorder_module, 'start_record', spawn)

    runner = DeferredRunner()
    recorder = DvrRecorder(registry, run_in_background=runner)
    scheduler = DvrScheduler(recorder, registry, timer_factory=timers)
    now = timezone.now()
    job = make_job(user, now - timedelta(minutes=1), now + timedelta(minutes=30))
    try:
        scheduler.schedule(job)
        scheduler.schedule(job)

        assert len(spawned) == 1
        job.refresh_from_db()
        assert job.status == DvrJob.STATUS_RECORDING
        assert registry.get(job.id) == spawned[0].pid == job.ffmpeg_pid

        # L'arrêt programmé atteint bien la capture d'origine
        assert len(timers.active()) == 1
        timers.active()[0].fire()
        assert spawned[0].wait(timeout=5) == -signal.SIGTERM

        runner.run_all()
        job.refresh_from_db()
        assert job.status == DvrJob.STATUS_ERROR
        assert len(registry) == 0
    finally:
        for proc in spawned:
            if proc.poll() is None:
                proc.kill()
                proc.wait()
