"""
Configuration admin pour l'archive
"""
from django.contrib import admin
from .models import Recording


@admin.register(Recording)
class RecordingAdmin(admin.ModelAdmin):
    list_display = [
        'program_title', 'channel_name', 'start_time',
        'duration_formatted', 'file_size_bytes', 'owner'
    ]
    list_filter = ['channel_name', 'start_time']
    search_fields = ['program_title', 'channel_name', 'file_path']
    readonly_fields = [
        'job', 'created_at', 'duration_formatted', 'file_size_bytes', 'file_path'
    ]
    fieldsets = (
        ('Informations générales', {
            'fields': ('program_title', 'channel_name', 'owner', 'job')
        }),
        ('Fichier', {
            'fields': (
                'file_path', 'start_time', 'duration_seconds',
                'duration_formatted', 'file_size_bytes'
            )
        }),
        ('Gestion', {
            'fields': ('created_at',)
        }),
    )
