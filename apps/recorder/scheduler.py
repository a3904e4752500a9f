"""
Planification des jobs DVR

Chaque job programmé possède au plus deux déclencheurs : un démarrage à
start_time et un arrêt à end_time. L'ensemble des déclencheurs vit en
mémoire et est reconstruit depuis la base à chaque démarrage du serveur.
"""
import itertools
import threading
import logging

from django.db import connection
from django.utils import timezone

from . import jobs
from .models import DvrJob
from .services import is_process_running

logger = logging.getLogger(__name__)


def daemon_timer(interval, function, args=()):
    """threading.Timer démon dont le thread libère sa connexion DB"""
    def run(*call_args):
        try:
            function(*call_args)
        finally:
            connection.close()

    timer = threading.Timer(interval, run, args=args)
    timer.daemon = True
    return timer


class DvrScheduler:
    """
    Déclencheurs de démarrage/arrêt des jobs DVR

    schedule() peut être appelé plusieurs fois pour un même job : les
    déclencheurs existants sont toujours désarmés avant d'en armer de
    nouveaux. Un déclencheur désarmé pendant que son callback démarre est
    ignoré grâce au numéro de génération.
    """

    def __init__(self, recorder, registry, timer_factory=daemon_timer, clock=timezone.now):
        self.recorder = recorder
        self.registry = registry
        self._timer_factory = timer_factory
        self._clock = clock
        self._lock = threading.RLock()
        self._timers = {}
        self._generations = itertools.count(1)

    def armed(self, job_id):
        """Déclencheurs armés pour un job, ex: {'start', 'stop'}"""
        with self._lock:
            entry = self._timers.get(job_id) or {}
            return {kind for kind in ('start', 'stop') if kind in entry}

    def scheduled_job_ids(self):
        with self._lock:
            return set(self._timers)

    def schedule(self, job):
        """
        Arme les déclencheurs d'un job

        Returns:
            bool: False si la fenêtre est déjà écoulée (aucun déclencheur armé)
        """
        self.cancel(job.id)
        now = self._clock()

        if job.end_time <= now:
            logger.info(f"Job {job.id} (\"{job.program_title}\") déjà passé, non programmé")
            if job.status == DvrJob.STATUS_SCHEDULED:
                jobs.expire_job(job.id)
            return False

        start_now = job.start_time <= now
        generation = next(self._generations)
        entry = {'generation': generation}

        if not start_now:
            delay = (job.start_time - now).total_seconds()
            entry['start'] = self._timer_factory(delay, self._fire_start, args=(job.id, generation))
        delay = (job.end_time - now).total_seconds()
        entry['stop'] = self._timer_factory(delay, self._fire_stop, args=(job.id, generation))

        with self._lock:
            self._timers[job.id] = entry

        if 'start' in entry:
            entry['start'].start()
            logger.info(f"Démarrage du job {job.id} programmé à {job.start_time.isoformat()}")
        entry['stop'].start()
        logger.info(f"Arrêt du job {job.id} programmé à {job.end_time.isoformat()}")

        if start_now:
            self._start_now(job.id)
        return True

    def _start_now(self, job_id):
        # Fenêtre déjà ouverte : seul un job encore 'scheduled' et sans
        # processus connu peut démarrer
        current = jobs.get_job(job_id)
        if current is None or current.status != DvrJob.STATUS_SCHEDULED:
            logger.info(f"Job {job_id} n'est plus programmé, pas de démarrage immédiat")
            return
        if job_id in self.registry:
            logger.warning(f"Job {job_id} a déjà un transcodeur actif, démarrage ignoré")
            return
        self.recorder.start_recording(current)

    def cancel(self, job_id):
        """
        Désarme les déclencheurs d'un job

        Ne modifie pas la base : le passage à 'cancelled' revient à l'appelant.
        """
        with self._lock:
            entry = self._timers.pop(job_id, None)
        if not entry:
            return False
        for kind in ('start', 'stop'):
            timer = entry.get(kind)
            if timer is not None:
                timer.cancel()
        logger.debug(f"Déclencheurs du job {job_id} désarmés")
        return True

    def _claim(self, job_id, generation, kind):
        with self._lock:
            entry = self._timers.get(job_id)
            if entry is None or entry['generation'] != generation or kind not in entry:
                return False
            del entry[kind]
            if 'start' not in entry and 'stop' not in entry:
                del self._timers[job_id]
            return True

    def _fire_start(self, job_id, generation):
        if not self._claim(job_id, generation, 'start'):
            return
        try:
            job = jobs.get_job(job_id)
            if job is None or job.status != DvrJob.STATUS_SCHEDULED:
                logger.info(f"Job {job_id} n'est plus programmé, démarrage ignoré")
                return
            self.recorder.start_recording(job)
        except Exception:
            logger.exception(f"Erreur du déclencheur de démarrage du job {job_id}")

    def _fire_stop(self, job_id, generation):
        if not self._claim(job_id, generation, 'stop'):
            return
        # L'éventuel démarrage encore armé n'a plus lieu d'être
        self.cancel(job_id)
        pid = self.registry.get(job_id)
        if pid is None:
            return
        logger.info(f"Heure de fin atteinte pour le job {job_id}, arrêt du transcodeur (PID {pid})")
        self.registry.terminate(job_id)

    def reconcile_on_startup(self):
        """
        Remet l'état en mémoire en accord avec la base après un redémarrage

        Les jobs restés 'recording' passent en erreur (leur processus a
        disparu avec l'ancien serveur), puis les jobs 'scheduled' sont
        réarmés.

        Returns:
            tuple: (jobs passés en erreur, jobs réarmés)
        """
        for job in jobs.interrupted_jobs().only('id', 'ffmpeg_pid'):
            if is_process_running(job.ffmpeg_pid):
                logger.warning(
                    f"Le PID {job.ffmpeg_pid} du job {job.id} existe encore "
                    f"(transcodeur orphelin ou PID réutilisé), non repris"
                )

        failed = jobs.fail_interrupted_jobs()
        if failed:
            logger.warning(f"{failed} job(s) 'recording' interrompu(s) passé(s) en erreur")

        pending = list(jobs.pending_jobs())
        logger.info(f"{len(pending)} job(s) DVR à programmer")
        rearmed = 0
        for job in pending:
            try:
                if self.schedule(job):
                    rearmed += 1
            except Exception:
                logger.exception(f"Impossible de programmer le job {job.id}")
        return failed, rearmed

    def shutdown(self):
        """Désarme tous les déclencheurs"""
        for job_id in self.scheduled_job_ids():
            self.cancel(job_id)
