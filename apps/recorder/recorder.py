"""
Lancement et supervision des transcodeurs pour les jobs DVR

Chaque enregistrement est un processus enfant indépendant, surveillé par son
propre thread : le thread attend la fin du processus puis exécute une seule
fois la finalisation (enregistrement terminé ou erreur).
"""
import os
import threading
import logging

from django.db import connection, transaction

from apps.archive.services import archive_recording
from apps.guide.channels import find_channel

from . import jobs
from .preferences import load_preferences
from .services import (
    CommandTemplateError,
    build_command,
    build_output_path,
    start_record,
    stop_record,
)

logger = logging.getLogger(__name__)


def run_in_thread(target, *args):
    """Exécute target dans un thread démon qui libère sa connexion DB à la fin"""
    def runner():
        try:
            target(*args)
        finally:
            connection.close()

    thread = threading.Thread(target=runner, daemon=True)
    thread.start()
    return thread


def _file_size(path):
    try:
        return os.path.getsize(path)
    except OSError:
        return None


class DvrRecorder:
    """
    Transforme un job programmé en processus de capture, puis en job
    'completed' (avec enregistrement archivé) ou 'error'

    Aucune exception ne sort de start_recording : tout échec est journalisé
    et converti en status = error.
    """

    def __init__(self, registry, channel_lookup=None, preferences_loader=None,
                 recordings_dir=None, run_in_background=None):
        self.registry = registry
        self.channel_lookup = channel_lookup or find_channel
        self.preferences_loader = preferences_loader or load_preferences
        self.recordings_dir = recordings_dir
        self.run_in_background = run_in_background or run_in_thread

    def start_recording(self, job):
        """
        Démarre l'enregistrement d'un job

        Returns:
            subprocess.Popen | None: Le processus lancé, ou None en cas d'échec
        """
        if job.id in self.registry:
            # Ne jamais écraser le PID d'une capture en cours
            logger.warning(f"Job {job.id} déjà en cours d'enregistrement (PID {self.registry.get(job.id)})")
            return None
        try:
            return self._start(job)
        except Exception as e:
            logger.exception(f"Erreur inattendue au démarrage du job {job.id}")
            self._fail(job, f"Erreur interne: {e}")
            return None

    def _fail(self, job, message):
        logger.error(f"Impossible d'enregistrer le job {job.id}: {message}")
        self.registry.unregister(job.id)
        jobs.mark_error(job.id, message)
        return None

    def _start(self, job):
        logger.info(f"Démarrage de l'enregistrement du job {job.id}: \"{job.program_title}\"")

        channel = self.channel_lookup(job.channel_id)
        if not channel or not channel.get('url'):
            return self._fail(job, f"Chaîne {job.channel_id} introuvable dans la playlist")

        preferences = self.preferences_loader()
        profile = preferences.recording_profile(job.profile_id)
        if not profile:
            return self._fail(job, f"Profil d'enregistrement {job.profile_id} introuvable")

        user_agent = preferences.user_agent(job.user_agent_id)
        if user_agent is None:
            return self._fail(job, f"User-agent {job.user_agent_id} introuvable")

        out_path = build_output_path(job.id, job.program_title, self.recordings_dir)
        try:
            cmd = build_command(profile.get('command'), channel['url'], user_agent, out_path)
        except CommandTemplateError as e:
            return self._fail(job, str(e))

        out_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            proc = start_record(cmd)
        except OSError as e:
            return self._on_spawn_error(job, e)

        if not self.registry.register(job.id, proc.pid):
            logger.warning(f"Job {job.id} déjà suivi, arrêt du transcodeur en double {proc.pid}")
            stop_record(proc.pid)
            self.run_in_background(proc.wait)
            return None

        try:
            launched = jobs.mark_recording(job.id, proc.pid, out_path)
        except Exception:
            logger.exception(f"Mise à jour du job {job.id} impossible après le lancement")
            launched = False

        if not launched:
            logger.warning(
                f"Le job {job.id} n'est plus programmé, arrêt du transcodeur {proc.pid}"
            )
            self.registry.terminate(job.id)

        self.run_in_background(self._drain_stderr, job.id, proc)
        self.run_in_background(self._supervise, job, proc, out_path)
        return proc

    def _on_spawn_error(self, job, error):
        # Aucun PID n'a jamais été obtenu
        logger.error(f"Échec du lancement du transcodeur pour le job {job.id}: {error}")
        self.registry.unregister(job.id)
        jobs.mark_error(job.id, f"Lancement du transcodeur impossible: {error}")
        return None

    def _drain_stderr(self, job_id, proc):
        if proc.stderr is None:
            return
        for line in proc.stderr:
            line = line.rstrip()
            if line:
                logger.debug(f"[FFMPEG_DVR][{job_id}] {line}")

    def _supervise(self, job, proc, out_path):
        try:
            return_code = proc.wait()
            self._on_exit(job, return_code, out_path)
        except Exception:
            logger.exception(f"Erreur lors de la finalisation du job {job.id}")
            self.registry.unregister(job.id)
            jobs.mark_error(job.id, "Erreur interne lors de la finalisation")

    def _on_exit(self, job, return_code, out_path):
        """Finalisation unique d'un processus terminé (fin normale, signal ou crash)"""
        self.registry.unregister(job.id)

        if return_code == 0:
            logger.info(f"Processus du job {job.id} (\"{job.program_title}\") terminé proprement")
        else:
            logger.info(f"Processus du job {job.id} (\"{job.program_title}\") terminé avec le code {return_code}")

        size = _file_size(out_path)
        if return_code == 0 and size:
            with transaction.atomic():
                if jobs.mark_completed(job.id):
                    archive_recording(job, out_path, size)
                    return
            logger.warning(f"Le job {job.id} n'est plus en cours, fichier {out_path} écarté")
        else:
            if return_code != 0:
                message = f"Le transcodeur s'est arrêté avec le code {return_code}"
            elif size is None:
                message = "Aucun fichier produit"
            else:
                message = "Fichier produit vide"
            logger.error(f"Enregistrement du job {job.id} en échec: {message}")
            jobs.mark_error(job.id, message)

        if size is not None:
            try:
                os.remove(out_path)
                logger.info(f"Fichier invalide supprimé: {out_path}")
            except OSError as e:
                logger.error(f"Impossible de supprimer le fichier invalide {out_path}: {e}")
