"""
Registre des processus d'enregistrement actifs (job id -> PID)

Cache local au processus serveur : la source de vérité reste la table des
jobs (status/ffmpeg_pid), reconstruite à chaque démarrage.
"""
import signal
import threading
import logging

from django.conf import settings

from .services import stop_record

logger = logging.getLogger(__name__)


class ProcessRegistry:
    """
    Associe chaque job en cours d'enregistrement au PID de son transcodeur
    """

    def __init__(self, grace_seconds=None, timer_factory=threading.Timer):
        if grace_seconds is None:
            grace_seconds = getattr(settings, 'DVR_STOP_GRACE_SECONDS', 0)
        self.grace_seconds = grace_seconds
        self._timer_factory = timer_factory
        self._lock = threading.Lock()
        self._pids = {}

    def register(self, job_id, pid):
        """
        Associe un PID à un job

        Returns:
            bool: False si le job a déjà un PID (il n'est jamais remplacé)
        """
        with self._lock:
            if job_id in self._pids:
                return False
            self._pids[job_id] = pid
        logger.debug(f"Job {job_id} enregistré avec le PID {pid}")
        return True

    def unregister(self, job_id):
        """Retire le job du registre et retourne son PID (ou None)"""
        with self._lock:
            return self._pids.pop(job_id, None)

    def get(self, job_id):
        with self._lock:
            return self._pids.get(job_id)

    def job_ids(self):
        with self._lock:
            return set(self._pids)

    def __contains__(self, job_id):
        with self._lock:
            return job_id in self._pids

    def __len__(self):
        with self._lock:
            return len(self._pids)

    def terminate(self, job_id):
        """
        Demande l'arrêt du transcodeur d'un job (SIGTERM)

        Si un délai de grâce est configuré, un SIGKILL suit lorsque le même
        PID est toujours enregistré à l'expiration du délai.

        Returns:
            bool: True si le signal a été délivré
        """
        pid = self.get(job_id)
        if pid is None:
            return False

        delivered = stop_record(pid, signal.SIGTERM)
        if delivered and self.grace_seconds and self.grace_seconds > 0:
            timer = self._timer_factory(self.grace_seconds, self._escalate, args=(job_id, pid))
            timer.daemon = True
            timer.start()
        return delivered

    def _escalate(self, job_id, pid):
        if self.get(job_id) != pid:
            return
        logger.warning(
            f"Le transcodeur du job {job_id} (PID {pid}) ignore SIGTERM depuis "
            f"{self.grace_seconds}s, envoi de SIGKILL"
        )
        stop_record(pid, signal.SIGKILL)

    def terminate_all(self):
        """Arrête tous les transcodeurs connus (arrêt du serveur)"""
        for job_id in self.job_ids():
            self.terminate(job_id)
