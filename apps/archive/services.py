"""
Services pour les enregistrements terminés
"""
import os
import logging

from .models import Recording

logger = logging.getLogger(__name__)


def archive_recording(job, file_path, file_size):
    """
    Crée (ou met à jour) l'enregistrement terminé d'un job

    La durée est celle de la fenêtre du job, pas la durée réelle du
    processus.

    Args:
        job: DvrJob terminé avec succès
        file_path: Fichier produit par le transcodeur
        file_size: Taille du fichier en octets

    Returns:
        Recording
    """
    recording, _ = Recording.objects.update_or_create(
        file_path=str(file_path),
        defaults={
            'owner_id': job.owner_id,
            'job_id': job.id,
            'channel_name': job.channel_name,
            'program_title': job.program_title,
            'start_time': job.start_time,
            'duration_seconds': job.duration_seconds,
            'file_size_bytes': file_size,
        },
    )
    logger.info(f"Job {job.id} archivé: {recording.filename} ({file_size} octets)")
    return recording


def delete_recording(recording):
    """
    Supprime un enregistrement et son fichier

    Un fichier déjà absent n'empêche pas la suppression de la ligne.
    """
    path = recording.file_path
    if os.path.exists(path):
        try:
            os.remove(path)
            logger.info(f"Fichier supprimé: {path}")
        except OSError as e:
            logger.error(f"Erreur lors de la suppression du fichier {path}: {e}")
    recording.delete()
