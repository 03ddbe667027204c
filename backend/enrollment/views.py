from rest_framework import generics, status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from drf_spectacular.utils import extend_schema, OpenApiParameter

from users.identity import resolve_actor
from users.permissions import IsAdminRole, IsDeanRole, IsLecturerRole, IsStudentRole
from . import services
from .models import LecturerOffer, StudentPreference, TopicPool
from .serializers import (
    LecturerOfferSerializer, OfferCreateSerializer, OfferStatusSerializer,
    OfferUpdateSerializer, PreferenceBulkStatusSerializer, PreferenceStatusSerializer,
    PreferenceWriteSerializer, StudentPreferenceSerializer, TopicPoolSerializer,
)


class TopicPoolListCreateView(generics.ListCreateAPIView):
    serializer_class = TopicPoolSerializer
    queryset = TopicPool.objects.all()

    def get_permissions(self):
        if self.request.method == "POST":
            return [IsAdminRole()]
        return [IsAuthenticated()]


class PreferenceListCreateView(APIView):
    """
    GET  - students see their own list; deans/admins see everyone (?student=<id>)
    POST - a student registers a new ranked preference
    """
    def get_permissions(self):
        if self.request.method == "POST":
            return [IsStudentRole()]
        return [IsAuthenticated()]

    @extend_schema(parameters=[OpenApiParameter("student", int, required=False)])
    def get(self, request):
        actor = resolve_actor(request.user)
        qs = (StudentPreference.objects
              .filter(is_deleted=False)
              .select_related("student", "lecturer", "topic_pool"))
        if actor.is_admin or actor.is_dean:
            student_id = request.query_params.get("student")
            if student_id:
                qs = qs.filter(student_id=student_id)
        elif actor.is_student:
            qs = qs.filter(student_id=actor.id)
        else:
            qs = qs.filter(lecturer_id=actor.id)
        return Response(StudentPreferenceSerializer(qs, many=True).data)

    @extend_schema(request=PreferenceWriteSerializer, responses=StudentPreferenceSerializer)
    def post(self, request):
        serializer = PreferenceWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        preference = services.create_preference(resolve_actor(request.user), **serializer.validated_data)
        return Response(StudentPreferenceSerializer(preference).data, status=status.HTTP_201_CREATED)


class PreferenceDetailView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(request=PreferenceWriteSerializer, responses=StudentPreferenceSerializer)
    def patch(self, request, pk):
        serializer = PreferenceWriteSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        preference = services.update_preference(resolve_actor(request.user), pk, **serializer.validated_data)
        return Response(StudentPreferenceSerializer(preference).data)

    def delete(self, request, pk):
        services.delete_preference(resolve_actor(request.user), pk)
        return Response(status=status.HTTP_204_NO_CONTENT)


class PreferenceStatusView(APIView):
    permission_classes = [IsDeanRole]

    @extend_schema(request=PreferenceStatusSerializer, responses=StudentPreferenceSerializer)
    def patch(self, request, pk):
        serializer = PreferenceStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        preference = services.set_preference_status(
            resolve_actor(request.user), pk, serializer.validated_data["status"]
        )
        return Response(StudentPreferenceSerializer(preference).data)


class PreferenceBulkStatusView(APIView):
    permission_classes = [IsDeanRole]

    @extend_schema(request=PreferenceBulkStatusSerializer)
    def post(self, request):
        serializer = PreferenceBulkStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = services.bulk_set_preference_status(
            resolve_actor(request.user),
            serializer.validated_data["ids"],
            serializer.validated_data["status"],
        )
        return Response(result)


class OfferListCreateView(APIView):
    permission_classes = [IsLecturerRole]

    def get(self, request):
        actor = resolve_actor(request.user)
        qs = LecturerOffer.objects.filter(is_deleted=False).select_related("lecturer")
        if not (actor.is_admin or actor.is_dean):
            qs = qs.filter(lecturer_id=actor.id)
        return Response(LecturerOfferSerializer(qs, many=True).data)

    @extend_schema(request=OfferCreateSerializer, responses=LecturerOfferSerializer)
    def post(self, request):
        serializer = OfferCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        offer = services.create_offer(resolve_actor(request.user), **serializer.validated_data)
        return Response(LecturerOfferSerializer(offer).data, status=status.HTTP_201_CREATED)


class OfferDetailView(APIView):
    permission_classes = [IsLecturerRole]

    @extend_schema(request=OfferUpdateSerializer, responses=LecturerOfferSerializer)
    def patch(self, request, pk):
        serializer = OfferUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        offer = services.update_offer(resolve_actor(request.user), pk, **serializer.validated_data)
        return Response(LecturerOfferSerializer(offer).data)

    def delete(self, request, pk):
        services.delete_offer(resolve_actor(request.user), pk)
        return Response(status=status.HTTP_204_NO_CONTENT)


class OfferStatusView(APIView):
    permission_classes = [IsDeanRole]

    @extend_schema(request=OfferStatusSerializer, responses=LecturerOfferSerializer)
    def patch(self, request, pk):
        serializer = OfferStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        offer = services.set_offer_status(resolve_actor(request.user), pk, serializer.validated_data["status"])
        return Response(LecturerOfferSerializer(offer).data)
