from django.db.models import Q
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from drf_spectacular.utils import extend_schema

from capstone_portal.exceptions import NotFoundError
from users.identity import resolve_actor
from users.permissions import IsDeanRole
from .models import OfficialProject
from .serializers import OfficialProjectSerializer
from .services import retry_pending_side_effects


def _projects_for(actor):
    qs = (OfficialProject.objects
          .select_related('approved_by', 'division', 'proposal')
          .prefetch_related('members__student', 'members__faculty_member'))
    if actor.is_admin:
        return qs
    scope = Q(members__student_id=actor.id) | Q(members__faculty_member_id=actor.id)
    if actor.division_ids:
        scope |= Q(division_id__in=actor.division_ids)
    if actor.is_dean and actor.faculty_id is not None:
        scope |= Q(division__faculty_id=actor.faculty_id)
    return qs.filter(scope).distinct()


class ProjectListView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(responses=OfficialProjectSerializer(many=True))
    def get(self, request):
        qs = _projects_for(resolve_actor(request.user))
        return Response(OfficialProjectSerializer(qs, many=True).data)


class ProjectDetailView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(responses=OfficialProjectSerializer)
    def get(self, request, pk):
        project = _projects_for(resolve_actor(request.user)).filter(pk=pk).first()
        if project is None:
            raise NotFoundError(f"Project {pk} not found.")
        return Response(OfficialProjectSerializer(project).data)


class RetrySideEffectsView(APIView):
    """Same sweep as the ``retry_side_effects`` management command."""
    permission_classes = [IsDeanRole]

    def post(self, request):
        outcomes = retry_pending_side_effects()
        return Response({
            "retried": len(outcomes),
            "failed": sum(1 for o in outcomes if o["error"]),
            "results": outcomes,
        })
