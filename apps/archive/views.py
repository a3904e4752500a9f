"""
Vues API pour l'archive des enregistrements DVR
"""
from pathlib import Path

from rest_framework import filters, mixins, viewsets
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django_filters.rest_framework import DjangoFilterBackend
from django.conf import settings
from django.http import FileResponse, Http404

from .models import Recording
from .serializers import RecordingSerializer
from .services import delete_recording


class RecordingViewSet(mixins.ListModelMixin,
                       mixins.RetrieveModelMixin,
                       mixins.DestroyModelMixin,
                       viewsets.GenericViewSet):
    """
    ViewSet pour les enregistrements terminés de l'utilisateur
    """
    serializer_class = RecordingSerializer
    permission_classes = [IsAuthenticated]
    filter_backends = [DjangoFilterBackend, filters.SearchFilter]
    filterset_fields = ['channel_name']
    search_fields = ['program_title', 'channel_name']
    pagination_class = None

    def get_queryset(self):
        return (
            Recording.objects.filter(owner=self.request.user)
            .order_by('-start_time', '-id')
        )

    def destroy(self, request, *args, **kwargs):
        """Supprime l'enregistrement et son fichier"""
        recording = self.get_object()
        delete_recording(recording)
        return Response({'success': True})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def serve_recording_file(request, filename):
    """
    Sert un fichier enregistré pour la lecture

    URL: GET /dvr/{filename}
    """
    if Path(filename).name != filename or filename in ('', '.', '..'):
        raise Http404

    path = Path(settings.DVR_ROOT) / filename
    if not path.is_file():
        raise Http404

    return FileResponse(open(path, 'rb'), filename=filename)
