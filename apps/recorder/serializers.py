"""
Serializers pour l'API DVR
"""
from rest_framework import serializers
from .models import DvrJob


class DvrJobSerializer(serializers.ModelSerializer):
    """Serializer pour les jobs DVR (lecture seule : seul le moteur les modifie)"""
    status_display = serializers.CharField(source='get_status_display', read_only=True)

    class Meta:
        model = DvrJob
        fields = [
            'id', 'owner', 'channel_id', 'channel_name', 'program_title',
            'start_time', 'end_time', 'status', 'status_display',
            'ffmpeg_pid', 'file_path', 'profile_id', 'user_agent_id',
            'pre_buffer_minutes', 'post_buffer_minutes', 'error_message',
            'created_at', 'started_at', 'completed_at'
        ]
        read_only_fields = fields


class ScheduleRequestSerializer(serializers.Serializer):
    """Demande de programmation depuis le guide"""
    channel_id = serializers.CharField(max_length=255)
    channel_name = serializers.CharField(max_length=255)
    program_title = serializers.CharField(max_length=512)
    program_start = serializers.DateTimeField()
    program_stop = serializers.DateTimeField()

    def validate(self, attrs):
        if attrs['program_stop'] <= attrs['program_start']:
            raise serializers.ValidationError({
                'program_stop': "La fin du programme doit être postérieure à son début."
            })
        return attrs
