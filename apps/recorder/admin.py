"""
Configuration admin pour le DVR
"""
from django.contrib import admin
from .models import DvrJob


@admin.register(DvrJob)
class DvrJobAdmin(admin.ModelAdmin):
    list_display = [
        'id', 'program_title', 'channel_name', 'status', 'owner',
        'start_time', 'end_time', 'ffmpeg_pid'
    ]
    list_filter = ['status', 'channel_name', 'start_time']
    search_fields = ['program_title', 'channel_name', 'channel_id', 'file_path']
    readonly_fields = [
        'status', 'ffmpeg_pid', 'file_path', 'error_message',
        'created_at', 'started_at', 'completed_at'
    ]

    fieldsets = (
        ('Programme', {
            'fields': ('owner', 'channel_id', 'channel_name', 'program_title')
        }),
        ('Fenêtre', {
            'fields': ('start_time', 'end_time', 'pre_buffer_minutes', 'post_buffer_minutes')
        }),
        ('Exécution', {
            'fields': ('profile_id', 'user_agent_id', 'status', 'ffmpeg_pid', 'file_path', 'error_message')
        }),
        ('Dates', {
            'fields': ('created_at', 'started_at', 'completed_at')
        }),
    )
