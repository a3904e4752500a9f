"""
URLs pour l'API DVR
"""
from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import DvrJobViewSet, schedule_recording

router = DefaultRouter()
router.register(r'jobs', DvrJobViewSet, basename='dvrjob')

urlpatterns = [
    # POST /api/dvr/schedule/
    path('schedule/', schedule_recording, name='dvr-schedule'),

    # Routes pour les jobs (via le ViewSet) :
    # GET /api/dvr/jobs/
    # GET /api/dvr/jobs/{jobId}/
    # DELETE /api/dvr/jobs/{jobId}/
    # GET /api/dvr/jobs/active/
    path('', include(router.urls)),
]
