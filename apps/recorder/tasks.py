"""
Tâches Celery pour le DVR
"""
from celery import shared_task
from django.conf import settings
from django.core.mail import send_mail
import shutil
import logging

logger = logging.getLogger(__name__)


@shared_task
def check_storage_health():
    """
    Vérifie l'espace disque du répertoire des enregistrements et envoie une
    alerte si nécessaire
    """
    dvr_root = settings.DVR_ROOT
    threshold = getattr(settings, 'DVR_STORAGE_ALERT_PERCENT', 85)

    try:
        stat = shutil.disk_usage(dvr_root)
    except OSError as e:
        logger.error(f"Erreur lors de la vérification du stockage {dvr_root}: {e}")
        return {'error': str(e)}

    total = stat.total
    used = stat.used
    free = stat.free
    percent_used = (used / total) * 100 if total else 0.0

    logger.info(
        f"Espace disque DVR: {used / (1024**3):.2f}GB utilisé / "
        f"{total / (1024**3):.2f}GB total ({percent_used:.1f}%)"
    )

    alert_sent = False
    if percent_used > threshold:
        send_mail(
            subject='[ViniPlay] Espace disque DVR critique',
            message=f"""
L'espace disque des enregistrements DVR est critique !

Répertoire: {dvr_root}
Utilisé: {used / (1024**3):.2f}GB
Libre: {free / (1024**3):.2f}GB
Pourcentage: {percent_used:.1f}%

Les prochains enregistrements risquent d'échouer. Supprimez d'anciens
enregistrements ou augmentez la capacité.
""",
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[settings.NOTIFY_EMAIL],
            fail_silently=True,
        )
        alert_sent = True
        logger.warning(f"Alerte espace disque DVR envoyée ({percent_used:.1f}% utilisé)")

    return {
        'total_gb': total / (1024**3),
        'used_gb': used / (1024**3),
        'free_gb': free / (1024**3),
        'percent_used': percent_used,
        'alert_sent': alert_sent,
    }
