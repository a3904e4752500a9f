"""
URL Configuration for ViniPlay DVR
"""
from django.contrib import admin
from django.urls import path, include

from apps.archive.views import serve_recording_file

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/auth/', include('rest_framework.urls')),  # Login/logout par session
    path('api/dvr/', include('apps.recorder.urls')),
    path('api/dvr/', include('apps.archive.urls')),

    # Fichiers enregistrés, accès authentifié
    path('dvr/<str:filename>', serve_recording_file, name='dvr-file'),
]

# Customize admin
admin.site.site_header = "ViniPlay - DVR"
admin.site.site_title = "ViniPlay Admin"
admin.site.index_title = "Administration du DVR"
