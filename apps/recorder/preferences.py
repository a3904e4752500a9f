"""
Préférences DVR (profils d'enregistrement, user-agents, marges)

Les préférences vivent dans le settings.json partagé avec le reste de
l'application et peuvent changer à tout moment : elles sont relues à chaque
utilisation, jamais mises en cache.
"""
import copy
import json
import logging
from pathlib import Path
from django.conf import settings
from rest_framework import serializers

logger = logging.getLogger(__name__)

DEFAULT_PROFILE_ID = 'dvr-mp4-default'
DEFAULT_USER_AGENT_ID = 'default-ua'

DEFAULT_DVR_SETTINGS = {
    'preBufferMinutes': 1,
    'postBufferMinutes': 2,
    'activeRecordingProfileId': DEFAULT_PROFILE_ID,
    'recordingProfiles': [
        {
            'id': DEFAULT_PROFILE_ID,
            'name': 'Default MP4 (H.264/AAC)',
            'command': (
                '-user_agent "{userAgent}" -i "{streamUrl}" -c:v libx264 '
                '-preset veryfast -crf 23 -c:a aac -b:a 128k '
                '-movflags +faststart -f mp4 "{filePath}"'
            ),
            'isDefault': True,
        },
    ],
}

DEFAULT_SETTINGS = {
    'userAgents': [
        {
            'id': DEFAULT_USER_AGENT_ID,
            'name': 'ViniPlay Default',
            'value': 'VLC/3.0.20 (Linux; x86_64)',
            'isDefault': True,
        },
    ],
    'activeUserAgentId': DEFAULT_USER_AGENT_ID,
    'dvr': DEFAULT_DVR_SETTINGS,
}


class UserAgentSerializer(serializers.Serializer):
    id = serializers.CharField()
    name = serializers.CharField(required=False, allow_blank=True)
    value = serializers.CharField(allow_blank=True, trim_whitespace=False)


class RecordingProfileSerializer(serializers.Serializer):
    id = serializers.CharField()
    name = serializers.CharField(required=False, allow_blank=True)
    # Un modèle vide reste accepté : le job échouera à son démarrage
    command = serializers.CharField(allow_blank=True, trim_whitespace=False)


class DvrSettingsSerializer(serializers.Serializer):
    preBufferMinutes = serializers.IntegerField(min_value=0, default=0)
    postBufferMinutes = serializers.IntegerField(min_value=0, default=0)
    activeRecordingProfileId = serializers.CharField(allow_blank=True, default='')
    recordingProfiles = RecordingProfileSerializer(many=True, required=False)


class PreferencesSerializer(serializers.Serializer):
    """Partie de settings.json utilisée par le DVR (les autres clés sont ignorées)"""
    userAgents = UserAgentSerializer(many=True, required=False)
    activeUserAgentId = serializers.CharField(allow_blank=True, default='')
    dvr = DvrSettingsSerializer()


class DvrPreferences:
    """Vue en lecture seule sur les préférences utiles au DVR"""

    def __init__(self, data):
        self.data = data or {}
        self.dvr = self.data.get('dvr') or {}

    @property
    def pre_buffer_minutes(self):
        return self.dvr.get('preBufferMinutes', 0)

    @property
    def post_buffer_minutes(self):
        return self.dvr.get('postBufferMinutes', 0)

    @property
    def active_recording_profile_id(self):
        return self.dvr.get('activeRecordingProfileId') or ''

    @property
    def active_user_agent_id(self):
        return self.data.get('activeUserAgentId') or ''

    def recording_profile(self, profile_id):
        """Retourne le profil d'enregistrement (dict) ou None"""
        for profile in self.dvr.get('recordingProfiles') or []:
            if profile.get('id') == profile_id:
                return profile
        return None

    def user_agent(self, user_agent_id):
        """Retourne la valeur du user-agent ou None"""
        for agent in self.data.get('userAgents') or []:
            if agent.get('id') == user_agent_id:
                return agent.get('value')
        return None


def load_preferences(path=None):
    """
    Charge les préférences depuis settings.json

    Le fichier est créé avec les valeurs par défaut s'il n'existe pas. Un
    fichier illisible ou dont le contenu ne passe pas PreferencesSerializer
    est journalisé et remplacé en mémoire par les défauts.

    Args:
        path: Chemin du fichier (par défaut settings.DVR_SETTINGS_PATH)

    Returns:
        DvrPreferences
    """
    path = Path(path or settings.DVR_SETTINGS_PATH)

    if not path.exists():
        logger.info(f"settings.json introuvable, création des valeurs par défaut: {path}")
        data = copy.deepcopy(DEFAULT_SETTINGS)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(data, indent=2), encoding='utf-8')
        except OSError as e:
            logger.error(f"Impossible d'écrire {path}: {e}")
        return DvrPreferences(data)

    try:
        data = json.loads(path.read_text(encoding='utf-8'))
    except (OSError, ValueError) as e:
        logger.error(f"Lecture de {path} impossible, valeurs par défaut utilisées: {e}")
        return DvrPreferences(copy.deepcopy(DEFAULT_SETTINGS))

    if isinstance(data, dict) and not data.get('dvr'):
        data['dvr'] = copy.deepcopy(DEFAULT_DVR_SETTINGS)

    serializer = PreferencesSerializer(data=data)
    if not serializer.is_valid():
        logger.error(f"Contenu invalide dans {path}, valeurs par défaut utilisées: {serializer.errors}")
        return DvrPreferences(copy.deepcopy(DEFAULT_SETTINGS))
    return DvrPreferences(serializer.validated_data)
