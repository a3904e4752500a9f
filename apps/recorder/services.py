"""
Services bas niveau pour l'enregistrement : nom de fichier, ligne de
commande du transcodeur, lancement et signaux
"""
import os
import re
import shlex
import signal
import subprocess
from pathlib import Path
from django.conf import settings
import logging

logger = logging.getLogger(__name__)

PLACEHOLDERS = ('{streamUrl}', '{userAgent}', '{filePath}')


class CommandTemplateError(ValueError):
    """Modèle de commande inutilisable (vide, guillemets non fermés...)"""


def build_filename(job_id, program_title, extension='mp4'):
    """
    Construit un nom de fichier déterministe et sûr pour un job

    Tout caractère hors [a-z0-9] est remplacé par '_'.

    Exemple: (42, "Le 20h: Édition spéciale") -> "42_le_20h___dition_sp_ciale.mp4"
    """
    title = re.sub(r'[^a-z0-9]', '_', (program_title or '').lower())
    return f"{job_id}_{title}.{extension}"


def build_output_path(job_id, program_title, root=None):
    """Chemin complet du fichier de sortie sous DVR_ROOT"""
    root = Path(root or settings.DVR_ROOT)
    return root / build_filename(job_id, program_title)


def build_command(template, stream_url, user_agent, file_path, executable=None):
    """
    Matérialise un profil d'enregistrement en vecteur d'arguments

    Le modèle est découpé avant la substitution, sans shell : une valeur
    contenant des espaces ou des guillemets reste un seul argument.

    Args:
        template: Commande du profil, ex: '-i "{streamUrl}" -c copy "{filePath}"'
        stream_url: URL du flux de la chaîne
        user_agent: Valeur du user-agent
        file_path: Chemin du fichier de sortie
        executable: Exécutable utilisé si le modèle commence par une option
            (par défaut settings.FFMPEG_PATH)

    Returns:
        list: [exécutable, arg1, arg2, ...]
    """
    try:
        tokens = shlex.split(template or '')
    except ValueError as e:
        raise CommandTemplateError(f"Modèle de commande invalide: {e}") from e

    if not tokens:
        raise CommandTemplateError("Modèle de commande vide")

    values = dict(zip(PLACEHOLDERS, (stream_url, user_agent, str(file_path))))
    argv = []
    for token in tokens:
        for placeholder, value in values.items():
            token = token.replace(placeholder, value)
        argv.append(token)

    if argv[0].startswith('-'):
        argv.insert(0, executable or settings.FFMPEG_PATH)

    return argv


def start_record(cmd):
    """
    Démarre le transcodeur

    stdout est ignoré (la sortie va dans le fichier), stderr est capturé pour
    la journalisation uniquement.

    Args:
        cmd: Vecteur d'arguments construit par build_command

    Returns:
        subprocess.Popen: Le processus lancé

    Raises:
        OSError: Exécutable introuvable, permission refusée...
    """
    logger.info(f"Démarrage enregistrement: {shlex.join(cmd)}")

    return subprocess.Popen(
        cmd,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.PIPE,
        text=True,
        errors='replace',
    )


def is_process_running(pid):
    """Un processus portant ce PID existe-t-il encore ?"""
    if not pid:
        return False
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        # PID vivant mais appartenant à un autre utilisateur
        pass
    return True


def stop_record(process_id, sig=signal.SIGTERM):
    """
    Envoie un signal d'arrêt à un processus d'enregistrement

    Un processus déjà terminé n'est pas une erreur : l'échec est journalisé
    et False est retourné.

    Args:
        process_id: PID du processus
        sig: Signal à envoyer (SIGTERM par défaut)

    Returns:
        bool: True si le signal a été délivré
    """
    try:
        os.kill(process_id, sig)
        logger.info(f"Signal {signal.Signals(sig).name} envoyé au processus {process_id}")
        return True
    except ProcessLookupError:
        logger.warning(f"Processus {process_id} introuvable")
        return False
    except OSError as e:
        logger.error(f"Erreur lors de l'arrêt du processus {process_id}: {e}")
        return False
