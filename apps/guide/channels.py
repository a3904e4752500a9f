"""
Résolution des chaînes à partir de la playlist M3U fusionnée

La fusion des sources M3U/EPG est faite ailleurs ; ce module ne fait que
lire le fichier produit et retrouver l'URL courante d'une chaîne.
"""
import re
import logging
from pathlib import Path
from django.conf import settings

logger = logging.getLogger(__name__)

STREAM_PREFIXES = ('http', 'rtp')

ATTRIBUTES = {
    'id': re.compile(r'tvg-id="([^"]*)"'),
    'logo': re.compile(r'tvg-logo="([^"]*)"'),
    'name': re.compile(r'tvg-name="([^"]*)"'),
    'group': re.compile(r'group-title="([^"]*)"'),
    'chno': re.compile(r'tvg-chno="([^"]*)"'),
    'source': re.compile(r'vini-source="([^"]*)"'),
}


def parse_m3u(data):
    """
    Parse une playlist M3U étendue

    Seules les entrées #EXTINF suivies d'une URL http(s)/rtp sont retenues.
    Les entrées sans tvg-id sont ignorées : elles ne peuvent pas être
    référencées par un job DVR.

    Args:
        data: Contenu texte de la playlist

    Returns:
        list: Liste de dicts {id, name, display_name, logo, group, chno, source, url}
    """
    if not data:
        return []

    lines = data.splitlines()
    channels = []
    i = 0
    while i < len(lines):
        line = lines[i].strip()
        if line.startswith('#EXTINF:') and i + 1 < len(lines):
            next_line = lines[i + 1].strip()
            if next_line.startswith(STREAM_PREFIXES):
                attrs = {}
                for key, pattern in ATTRIBUTES.items():
                    match = pattern.search(line)
                    attrs[key] = match.group(1) if match else None

                comma = line.rfind(',')
                display_name = line[comma + 1:].strip() if comma != -1 else 'Unknown'

                if attrs['id']:
                    channels.append({
                        'id': attrs['id'],
                        'name': attrs['name'] or display_name,
                        'display_name': display_name,
                        'logo': attrs['logo'] or '',
                        'group': attrs['group'] or 'Uncategorized',
                        'chno': attrs['chno'],
                        'source': attrs['source'] or 'Default',
                        'url': next_line,
                    })
                i += 2
                continue
        i += 1

    return channels


def load_channels(path=None):
    """Charge les chaînes de la playlist fusionnée (liste vide si absente)"""
    path = Path(path or settings.MERGED_M3U_PATH)
    if not path.exists():
        logger.warning(f"Playlist fusionnée introuvable: {path}")
        return []
    try:
        return parse_m3u(path.read_text(encoding='utf-8', errors='replace'))
    except OSError as e:
        logger.error(f"Lecture de la playlist impossible ({path}): {e}")
        return []


def find_channel(channel_id, path=None):
    """
    Retrouve une chaîne par son identifiant

    Args:
        channel_id: Identifiant tvg-id de la chaîne
        path: Playlist à lire (par défaut settings.MERGED_M3U_PATH)

    Returns:
        dict | None: La chaîne ({id, url, ...}) ou None si inconnue
    """
    for channel in load_channels(path):
        if channel['id'] == channel_id:
            return channel
    return None
