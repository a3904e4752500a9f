"""
Accès au stockage des jobs DVR

Chaque transition est un UPDATE conditionnel sur une seule ligne : la
transition n'a lieu que si le job est encore dans l'état attendu, ce qui
évite qu'elle écrase une annulation concurrente.
"""
from datetime import timedelta
import logging

from django.utils import timezone

from .models import DvrJob

logger = logging.getLogger(__name__)


def compute_window(program_start, program_stop, pre_buffer_minutes=0, post_buffer_minutes=0):
    """Fenêtre d'enregistrement réelle : début - marge avant, fin + marge après"""
    start_time = program_start - timedelta(minutes=pre_buffer_minutes)
    end_time = program_stop + timedelta(minutes=post_buffer_minutes)
    return start_time, end_time


def create_job(owner, channel_id, channel_name, program_title, program_start, program_stop, preferences):
    """
    Crée un job DVR dans l'état 'scheduled'

    Le profil, le user-agent et les marges actifs sont figés sur le job.
    """
    pre = preferences.pre_buffer_minutes
    post = preferences.post_buffer_minutes
    start_time, end_time = compute_window(program_start, program_stop, pre, post)

    job = DvrJob.objects.create(
        owner=owner,
        channel_id=channel_id,
        channel_name=channel_name,
        program_title=program_title,
        start_time=start_time,
        end_time=end_time,
        status=DvrJob.STATUS_SCHEDULED,
        profile_id=preferences.active_recording_profile_id,
        user_agent_id=preferences.active_user_agent_id,
        pre_buffer_minutes=pre,
        post_buffer_minutes=post,
    )
    logger.info(
        f"Job {job.id} programmé: \"{program_title}\" sur {channel_name} "
        f"({start_time.isoformat()} -> {end_time.isoformat()})"
    )
    return job


def get_job(job_id):
    return DvrJob.objects.filter(pk=job_id).first()


def jobs_for_owner(owner):
    """Jobs d'un utilisateur, début le plus récent en premier"""
    return DvrJob.objects.filter(owner=owner).order_by('-start_time', '-id')


def mark_recording(job_id, pid, file_path):
    """scheduled -> recording. Retourne False si le job a changé d'état entre-temps."""
    updated = DvrJob.objects.filter(
        pk=job_id,
        status=DvrJob.STATUS_SCHEDULED,
    ).update(
        status=DvrJob.STATUS_RECORDING,
        ffmpeg_pid=pid,
        file_path=str(file_path),
        started_at=timezone.now(),
        error_message='',
    )
    return updated == 1


def mark_completed(job_id):
    """recording -> completed"""
    updated = DvrJob.objects.filter(
        pk=job_id,
        status=DvrJob.STATUS_RECORDING,
    ).update(
        status=DvrJob.STATUS_COMPLETED,
        ffmpeg_pid=None,
        completed_at=timezone.now(),
    )
    return updated == 1


def mark_error(job_id, message=''):
    """
    Passe le job en erreur et efface le PID

    Les jobs annulés ou terminés ne sont pas touchés.
    """
    updated = DvrJob.objects.filter(
        pk=job_id,
        status__in=[DvrJob.STATUS_SCHEDULED, DvrJob.STATUS_RECORDING],
    ).update(
        status=DvrJob.STATUS_ERROR,
        ffmpeg_pid=None,
        error_message=message,
        completed_at=timezone.now(),
    )
    return updated == 1


def expire_job(job_id):
    """scheduled -> error pour une fenêtre déjà écoulée"""
    updated = DvrJob.objects.filter(
        pk=job_id,
        status=DvrJob.STATUS_SCHEDULED,
    ).update(
        status=DvrJob.STATUS_ERROR,
        error_message='Fenêtre d\'enregistrement déjà écoulée',
        completed_at=timezone.now(),
    )
    return updated == 1


def mark_cancelled(job_id):
    """scheduled -> cancelled. Un job en cours n'est jamais marqué annulé."""
    updated = DvrJob.objects.filter(
        pk=job_id,
        status=DvrJob.STATUS_SCHEDULED,
    ).update(status=DvrJob.STATUS_CANCELLED)
    return updated == 1


def interrupted_jobs():
    """Jobs restés 'recording' : leur processus a disparu avec l'ancien serveur"""
    return DvrJob.objects.filter(status=DvrJob.STATUS_RECORDING)


def fail_interrupted_jobs():
    """Passe tous les jobs 'recording' en erreur. Retourne le nombre de lignes."""
    return interrupted_jobs().update(
        status=DvrJob.STATUS_ERROR,
        ffmpeg_pid=None,
        error_message='Enregistrement interrompu par un redémarrage du serveur',
        completed_at=timezone.now(),
    )


def pending_jobs():
    """Jobs à réarmer au démarrage (jamais les jobs 'recording')"""
    return DvrJob.objects.filter(status=DvrJob.STATUS_SCHEDULED).order_by('start_time')
