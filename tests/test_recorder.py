import os
from datetime import timedelta

import pytest
from django.utils import timezone

from apps.archive.models import Recording
from apps.recorder.models import DvrJob
from apps.recorder.recorder import DvrRecorder

from .conftest import SH, DeferredRunner, make_job

pytestmark = pytest.mark.django_db


def open_window(user, **fields):
    now = timezone.now()
    return make_job(user, now - timedelta(seconds=30), now + timedelta(minutes=30), **fields)


def test_successful_recording_is_archived(dvr_engine, registry, user, settings):
    job = open_window(user, program_title='Journal de 20h')

    dvr_engine.schedule(job)

    job.refresh_from_db()
    assert job.status == DvrJob.STATUS_COMPLETED
    assert job.ffmpeg_pid is None
    assert job.completed_at is not None
    assert job.file_path == str(settings.DVR_ROOT / f'{job.id}_journal_de_20h.mp4')
    assert len(registry) == 0

    recording = Recording.objects.get(job=job)
    assert recording.owner == user
    assert recording.file_size_bytes == 8
    assert recording.duration_seconds == job.duration_seconds
    assert recording.start_time == job.start_time
    assert os.path.getsize(recording.file_path) == 8


def test_unknown_channel_fails_at_start_time(dvr_engine, timers, registry, user):
    now = timezone.now()
    job = make_job(user, now + timedelta(minutes=5), now + timedelta(minutes=35), channel_id='gone.fr')
    dvr_engine.schedule(job)
    job.refresh_from_db()
    assert job.status == DvrJob.STATUS_SCHEDULED

    timers.timers[0].fire()

    job.refresh_from_db()
    assert job.status == DvrJob.STATUS_ERROR
    assert 'gone.fr' in job.error_message
    assert job.ffmpeg_pid is None
    assert len(registry) == 0
    assert not Recording.objects.exists()


def test_non_zero_exit_discards_file(dvr_engine, profile, registry, user, settings):
    profile(SH + ' -c ": > {filePath}; exit 3"')
    job = open_window(user)

    dvr_engine.schedule(job)

    job.refresh_from_db()
    assert job.status == DvrJob.STATUS_ERROR
    assert '3' in job.error_message
    assert job.ffmpeg_pid is None
    assert not (settings.DVR_ROOT / f'{job.id}_journal.mp4').exists()
    assert not Recording.objects.exists()
    assert len(registry) == 0


def test_clean_exit_with_empty_file_is_an_error(dvr_engine, profile, user, settings):
    profile(SH + ' -c ": > {filePath}"')
    job = open_window(user)

    dvr_engine.schedule(job)

    job.refresh_from_db()
    assert job.status == DvrJob.STATUS_ERROR
    assert not (settings.DVR_ROOT / f'{job.id}_journal.mp4').exists()
    assert not Recording.objects.exists()


def test_clean_exit_without_file_is_an_error(dvr_engine, profile, user):
    profile(SH + ' -c "exit 0"')
    job = open_window(user)

    dvr_engine.schedule(job)

    job.refresh_from_db()
    assert job.status == DvrJob.STATUS_ERROR
    assert not Recording.objects.exists()


def test_spawn_failure(dvr_engine, profile, registry, user):
    profile('/nonexistent/ffmpeg -i "{streamUrl}" "{filePath}"')
    job = open_window(user)

    dvr_engine.schedule(job)

    job.refresh_from_db()
    assert job.status == DvrJob.STATUS_ERROR
    assert job.ffmpeg_pid is None
    assert len(registry) == 0


def test_invalid_command_template(dvr_engine, profile, registry, user):
    profile('ffmpeg -i "{streamUrl}')
    job = open_window(user)

    dvr_engine.schedule(job)

    job.refresh_from_db()
    assert job.status == DvrJob.STATUS_ERROR
    assert len(registry) == 0


@pytest.mark.parametrize('fields, fragment', [
    ({'profile_id': 'removed-profile'}, 'removed-profile'),
    ({'user_agent_id': 'removed-ua'}, 'removed-ua'),
])
def test_missing_profile_or_user_agent(dvr_engine, user, fields, fragment):
    job = open_window(user, **fields)

    dvr_engine.schedule(job)

    job.refresh_from_db()
    assert job.status == DvrJob.STATUS_ERROR
    assert fragment in job.error_message


def test_registry_matches_recording_jobs(dvr_paths, profile, registry, user):
    runner = DeferredRunner()
    recorder = DvrRecorder(registry, run_in_background=runner)
    job = open_window(user)

    proc = recorder.start_recording(job)

    job.refresh_from_db()
    assert job.status == DvrJob.STATUS_RECORDING
    assert registry.get(job.id) == proc.pid == job.ffmpeg_pid
    assert job.started_at is not None

    runner.run_all()

    job.refresh_from_db()
    assert job.status == DvrJob.STATUS_COMPLETED
    assert job.ffmpeg_pid is None
    assert job.id not in registry


def test_job_cancelled_before_spawn_is_stopped(dvr_paths, profile, registry, user):
    profile('sleep 30')
    runner = DeferredRunner()
    recorder = DvrRecorder(registry, run_in_background=runner)
    job = open_window(user, status=DvrJob.STATUS_CANCELLED)

    proc = recorder.start_recording(job)
    assert proc.wait(timeout=5) != 0
    runner.run_all()

    job.refresh_from_db()
    assert job.status == DvrJob.STATUS_CANCELLED
    assert job.ffmpeg_pid is None
    assert len(registry) == 0


def test_finalisation_runs_once(dvr_paths, profile, registry, user):
    runner = DeferredRunner()
    recorder = DvrRecorder(registry, run_in_background=runner)
    job = open_window(user)
    recorder.start_recording(job)
    runner.run_all()

    # Une seconde fin (signal tardif) ne change plus le job terminé
    recorder._on_exit(job, -15, dvr_paths.DVR_ROOT / 'absent.mp4')

    job.refresh_from_db()
    assert job.status == DvrJob.STATUS_COMPLETED
    assert Recording.objects.filter(job=job).count() == 1


def test_job_already_tracked_is_not_started_again(dvr_paths, profile, registry, user):
    runner = DeferredRunner()
    recorder = DvrRecorder(registry, run_in_background=runner)
    job = open_window(user)
    registry.register(job.id, 4194000)

    assert recorder.start_recording(job) is None

    job.refresh_from_db()
    assert job.status == DvrJob.STATUS_SCHEDULED
    assert registry.get(job.id) == 4194000
    assert runner.pending == []
