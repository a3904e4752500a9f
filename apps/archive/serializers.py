"""
Serializers pour l'API d'archive
"""
from rest_framework import serializers
from .models import Recording


class RecordingSerializer(serializers.ModelSerializer):
    """Serializer pour les enregistrements terminés"""
    filename = serializers.ReadOnlyField()
    duration_formatted = serializers.ReadOnlyField()
    url = serializers.SerializerMethodField()

    class Meta:
        model = Recording
        fields = [
            'id', 'owner', 'job', 'channel_name', 'program_title',
            'start_time', 'duration_seconds', 'duration_formatted',
            'file_size_bytes', 'file_path', 'filename', 'url', 'created_at'
        ]
        read_only_fields = fields

    def get_url(self, obj):
        return f"/dvr/{obj.filename}"
