"""
Modèles pour le moteur d'enregistrement DVR
"""
from django.conf import settings
from django.db import models


class DvrJob(models.Model):
    """
    Job DVR : enregistrement programmé, en cours ou historique

    La fenêtre start_time/end_time inclut déjà les marges avant/après.
    Invariant : ffmpeg_pid est renseigné si et seulement si status = recording.
    """
    STATUS_SCHEDULED = 'scheduled'
    STATUS_RECORDING = 'recording'
    STATUS_COMPLETED = 'completed'
    STATUS_ERROR = 'error'
    STATUS_CANCELLED = 'cancelled'

    STATUS_CHOICES = [
        (STATUS_SCHEDULED, 'Programmé'),
        (STATUS_RECORDING, 'En cours'),
        (STATUS_COMPLETED, 'Terminé'),
        (STATUS_ERROR, 'Erreur'),
        (STATUS_CANCELLED, 'Annulé'),
    ]

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='dvr_jobs',
        verbose_name='Propriétaire'
    )
    channel_id = models.CharField(
        max_length=255,
        verbose_name='ID de la chaîne'
    )
    channel_name = models.CharField(
        max_length=255,
        verbose_name='Nom de la chaîne'
    )
    program_title = models.CharField(
        max_length=512,
        verbose_name='Titre du programme'
    )
    start_time = models.DateTimeField(
        verbose_name='Début (marge incluse)'
    )
    end_time = models.DateTimeField(
        verbose_name='Fin (marge incluse)'
    )
    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=STATUS_SCHEDULED,
        db_index=True,
        verbose_name='Statut'
    )
    ffmpeg_pid = models.IntegerField(
        null=True,
        blank=True,
        verbose_name='PID du transcodeur'
    )
    file_path = models.CharField(
        max_length=2048,
        blank=True,
        verbose_name='Chemin de sortie'
    )

    # Paramètres figés au moment de la programmation
    profile_id = models.CharField(
        max_length=255,
        blank=True,
        verbose_name='Profil d\'enregistrement'
    )
    user_agent_id = models.CharField(
        max_length=255,
        blank=True,
        verbose_name='User-agent'
    )
    pre_buffer_minutes = models.PositiveIntegerField(
        default=0,
        verbose_name='Marge avant (minutes)'
    )
    post_buffer_minutes = models.PositiveIntegerField(
        default=0,
        verbose_name='Marge après (minutes)'
    )

    error_message = models.TextField(
        blank=True,
        verbose_name='Message d\'erreur'
    )
    created_at = models.DateTimeField(
        auto_now_add=True,
        verbose_name='Créé le'
    )
    started_at = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name='Démarré le'
    )
    completed_at = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name='Terminé le'
    )

    class Meta:
        db_table = 'dvr_jobs'
        verbose_name = 'Job DVR'
        verbose_name_plural = 'Jobs DVR'
        ordering = ['-start_time']

    def __str__(self):
        return f"Job {self.id} - {self.program_title} ({self.get_status_display()})"

    @property
    def duration_seconds(self):
        """Durée utile de la fenêtre, marges comprises"""
        return int(round((self.end_time - self.start_time).total_seconds()))
