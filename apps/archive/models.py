"""
Modèles pour l'archivage des enregistrements DVR terminés
"""
import os

from django.conf import settings
from django.db import models


class Recording(models.Model):
    """
    Enregistrement terminé avec succès

    Découplé du job qui l'a produit : la référence au job passe à NULL si la
    ligne du job disparaît.
    """
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='recordings',
        verbose_name='Propriétaire'
    )
    job = models.ForeignKey(
        'recorder.DvrJob',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='recordings',
        verbose_name='Job d\'origine'
    )
    channel_name = models.CharField(
        max_length=255,
        verbose_name='Chaîne'
    )
    program_title = models.CharField(
        max_length=512,
        verbose_name='Programme'
    )
    start_time = models.DateTimeField(
        verbose_name='Début'
    )
    duration_seconds = models.IntegerField(
        null=True,
        blank=True,
        verbose_name='Durée (secondes)'
    )
    file_size_bytes = models.BigIntegerField(
        null=True,
        blank=True,
        verbose_name='Taille du fichier (octets)'
    )
    file_path = models.CharField(
        max_length=2048,
        unique=True,
        verbose_name='Chemin du fichier'
    )
    created_at = models.DateTimeField(
        auto_now_add=True,
        verbose_name='Date de création'
    )

    class Meta:
        db_table = 'dvr_recordings'
        verbose_name = 'Enregistrement'
        verbose_name_plural = 'Enregistrements'
        ordering = ['-start_time']

    def __str__(self):
        return f"{self.program_title} ({self.channel_name})"

    @property
    def filename(self):
        return os.path.basename(self.file_path)

    @property
    def duration_formatted(self):
        """Retourne la durée formatée"""
        if not self.duration_seconds:
            return "N/A"
        hours = self.duration_seconds // 3600
        minutes = (self.duration_seconds % 3600) // 60
        seconds = self.duration_seconds % 60
        if hours > 0:
            return f"{hours}h{minutes:02d}m{seconds:02d}s"
        return f"{minutes}m{seconds:02d}s"
