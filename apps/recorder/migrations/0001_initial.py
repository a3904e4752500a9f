import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='DvrJob',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('channel_id', models.CharField(max_length=255, verbose_name='ID de la chaîne')),
                ('channel_name', models.CharField(max_length=255, verbose_name='Nom de la chaîne')),
                ('program_title', models.CharField(max_length=512, verbose_name='Titre du programme')),
                ('start_time', models.DateTimeField(verbose_name='Début (marge incluse)')),
                ('end_time', models.DateTimeField(verbose_name='Fin (marge incluse)')),
                ('status', models.CharField(choices=[('scheduled', 'Programmé'), ('recording', 'En cours'), ('completed', 'Terminé'), ('error', 'Erreur'), ('cancelled', 'Annulé')], db_index=True, default='scheduled', max_length=20, verbose_name='Statut')),
                ('ffmpeg_pid', models.IntegerField(blank=True, null=True, verbose_name='PID du transcodeur')),
                ('file_path', models.CharField(blank=True, max_length=2048, verbose_name='Chemin de sortie')),
                ('profile_id', models.CharField(blank=True, max_length=255, verbose_name="Profil d'enregistrement")),
                ('user_agent_id', models.CharField(blank=True, max_length=255, verbose_name='User-agent')),
                ('pre_buffer_minutes', models.PositiveIntegerField(default=0, verbose_name='Marge avant (minutes)')),
                ('post_buffer_minutes', models.PositiveIntegerField(default=0, verbose_name='Marge après (minutes)')),
                ('error_message', models.TextField(blank=True, verbose_name="Message d'erreur")),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='Créé le')),
                ('started_at', models.DateTimeField(blank=True, null=True, verbose_name='Démarré le')),
                ('completed_at', models.DateTimeField(blank=True, null=True, verbose_name='Terminé le')),
                ('owner', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='dvr_jobs', to=settings.AUTH_USER_MODEL, verbose_name='Propriétaire')),
            ],
            options={
                'verbose_name': 'Job DVR',
                'verbose_name_plural': 'Jobs DVR',
                'db_table': 'dvr_jobs',
                'ordering': ['-start_time'],
            },
        ),
    ]
