import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('recorder', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Recording',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('channel_name', models.CharField(max_length=255, verbose_name='Chaîne')),
                ('program_title', models.CharField(max_length=512, verbose_name='Programme')),
                ('start_time', models.DateTimeField(verbose_name='Début')),
                ('duration_seconds', models.IntegerField(blank=True, null=True, verbose_name='Durée (secondes)')),
                ('file_size_bytes', models.BigIntegerField(blank=True, null=True, verbose_name='Taille du fichier (octets)')),
                ('file_path', models.CharField(max_length=2048, unique=True, verbose_name='Chemin du fichier')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='Date de création')),
                ('job', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='recordings', to='recorder.dvrjob', verbose_name="Job d'origine")),
                ('owner', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='recordings', to=settings.AUTH_USER_MODEL, verbose_name='Propriétaire')),
            ],
            options={
                'verbose_name': 'Enregistrement',
                'verbose_name_plural': 'Enregistrements',
                'db_table': 'dvr_recordings',
                'ordering': ['-start_time'],
            },
        ),
    ]
