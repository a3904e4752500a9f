"""
Vues API pour les jobs DVR
"""
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django_filters.rest_framework import DjangoFilterBackend
import logging

from . import jobs
from .engine import get_dvr_engine
from .models import DvrJob
from .preferences import load_preferences
from .serializers import DvrJobSerializer, ScheduleRequestSerializer

logger = logging.getLogger(__name__)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def schedule_recording(request):
    """
    Programme l'enregistrement d'un programme du guide

    URL: POST /api/dvr/schedule/

    Body params:
    - channel_id: Identifiant de la chaîne
    - channel_name: Nom affiché de la chaîne
    - program_title: Titre du programme
    - program_start: Début du programme (ISO 8601)
    - program_stop: Fin du programme (ISO 8601)
    """
    serializer = ScheduleRequestSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    job = jobs.create_job(
        owner=request.user,
        channel_id=data['channel_id'],
        channel_name=data['channel_name'],
        program_title=data['program_title'],
        program_start=data['program_start'],
        program_stop=data['program_stop'],
        preferences=load_preferences(),
    )
    get_dvr_engine().schedule(job)

    job.refresh_from_db()
    return Response(
        {'success': True, 'job': DvrJobSerializer(job).data},
        status=status.HTTP_201_CREATED
    )


class DvrJobViewSet(mixins.ListModelMixin,
                    mixins.RetrieveModelMixin,
                    mixins.DestroyModelMixin,
                    viewsets.GenericViewSet):
    """
    ViewSet pour consulter et annuler les jobs DVR

    Les jobs ne sont jamais supprimés : DELETE annule le job.
    """
    serializer_class = DvrJobSerializer
    permission_classes = [IsAuthenticated]
    filter_backends = [DjangoFilterBackend]
    filterset_fields = ['status', 'channel_id']
    pagination_class = None

    def get_queryset(self):
        return jobs.jobs_for_owner(self.request.user)

    def destroy(self, request, *args, **kwargs):
        """
        Annule un job

        URL: DELETE /api/dvr/jobs/{jobId}/
        """
        job = self.get_object()
        outcome = get_dvr_engine().cancel_job(job)
        job.refresh_from_db()
        return Response({
            'success': True,
            'result': outcome,
            'job': DvrJobSerializer(job).data
        })

    @action(detail=False, methods=['get'])
    def active(self, request):
        """Liste les enregistrements en cours de l'utilisateur"""
        active_jobs = self.get_queryset().filter(status=DvrJob.STATUS_RECORDING)
        return Response({
            'count': active_jobs.count(),
            'jobs': DvrJobSerializer(active_jobs, many=True).data
        })
