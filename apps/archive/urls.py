"""
URLs pour l'API d'archive
"""
from django.urls import path, include
from rest_framework.routers import SimpleRouter
from .views import RecordingViewSet

router = SimpleRouter()
router.register(r'recordings', RecordingViewSet, basename='recording')

urlpatterns = [
    # GET /api/dvr/recordings/
    # DELETE /api/dvr/recordings/{id}/
    path('', include(router.urls)),
]
