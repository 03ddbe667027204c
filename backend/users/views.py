# backend/users/views.py
from rest_framework import generics
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from drf_spectacular.utils import extend_schema

from .identity import resolve_actor
from .models import Role, Faculty, DivisionMembership
from .serializers import (
    ActorSerializer, DivisionMembershipSerializer, FacultySerializer,
    RoleSerializer, UserSerializer,
)


@api_view(["GET"])
@permission_classes([IsAuthenticated])
def roles_list(request):
    roles = Role.objects.order_by("role_name")
    return Response(RoleSerializer(roles, many=True).data)


class MeView(APIView):
    """Profile of the caller plus the identity the workflow services see."""
    permission_classes = [IsAuthenticated]

    @extend_schema(summary="Current user and resolved identity")
    def get(self, request):
        actor = resolve_actor(request.user)
        return Response({
            "user": UserSerializer(request.user).data,
            "identity": ActorSerializer(actor).data,
        })


class FacultyListView(generics.ListAPIView):
    serializer_class = FacultySerializer
    permission_classes = [IsAuthenticated]
    queryset = Faculty.objects.prefetch_related("divisions")


class DivisionMembersView(generics.ListAPIView):
    serializer_class = DivisionMembershipSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        return (DivisionMembership.objects
                .filter(division_id=self.kwargs["division_id"])
                .select_related("user"))
