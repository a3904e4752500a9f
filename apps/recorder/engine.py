"""
Moteur DVR : assemble le registre des processus, l'enregistreur et le
planificateur pour le processus serveur
"""
import threading
import logging

from . import jobs
from .recorder import DvrRecorder
from .registry import ProcessRegistry
from .scheduler import DvrScheduler

logger = logging.getLogger(__name__)


class DvrEngine:
    """
    Point d'entrée unique du moteur DVR pour les vues et le démarrage
    """

    def __init__(self, registry=None, recorder=None, scheduler=None):
        self.registry = registry or ProcessRegistry()
        self.recorder = recorder or DvrRecorder(self.registry)
        self.scheduler = scheduler or DvrScheduler(self.recorder, self.registry)
        self._started = False
        self._lock = threading.Lock()

    def start(self):
        """Réconciliation au démarrage, une seule fois par processus"""
        with self._lock:
            if self._started:
                return False
            self._started = True
        logger.info("Démarrage du moteur DVR")
        self.scheduler.reconcile_on_startup()
        return True

    def schedule(self, job):
        return self.scheduler.schedule(job)

    def cancel_job(self, job):
        """
        Annulation demandée par l'utilisateur

        Un job programmé passe en 'cancelled'. Un job en cours reçoit un
        signal d'arrêt : sa finalisation observera une sortie non propre et
        le passera en 'error'.

        Returns:
            str: 'cancelled', 'stopping' ou 'unchanged'
        """
        self.scheduler.cancel(job.id)

        if jobs.mark_cancelled(job.id):
            logger.info(f"Job {job.id} annulé avant son démarrage")
            return 'cancelled'

        if job.id in self.registry:
            logger.info(f"Job {job.id} annulé en cours d'enregistrement, arrêt du transcodeur")
            self.registry.terminate(job.id)
            return 'stopping'

        return 'unchanged'

    def shutdown(self):
        """Arrêt du serveur : désarme les déclencheurs et arrête les captures"""
        logger.info("Arrêt du moteur DVR")
        self.scheduler.shutdown()
        self.registry.terminate_all()


# Instance singleton du moteur DVR
_dvr_engine = None
_dvr_engine_lock = threading.Lock()


def get_dvr_engine() -> DvrEngine:
    """
    Retourne l'instance singleton du moteur DVR

    Returns:
        Instance de DvrEngine
    """
    global _dvr_engine
    with _dvr_engine_lock:
        if _dvr_engine is None:
            _dvr_engine = DvrEngine()
        return _dvr_engine
