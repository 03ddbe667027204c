# allocation/views.py
import logging

from django.http import HttpResponse
from django.utils import timezone
from rest_framework import status
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from drf_spectacular.utils import OpenApiParameter, extend_schema

from capstone_portal.exceptions import ForbiddenTransitionError
from users.identity import resolve_actor
from users.permissions import CanManageAllocations, IsLecturerRole
from . import services
from .models import Allocation, AllocationStatus
from .recommendation import build_recommendation
from .serializers import (
    AcceptRecommendationSerializer,
    AllocationCreateSerializer,
    AllocationSerializer,
    AllocationStatusSerializer,
    AllocationUpdateSerializer,
    AllocationUploadSerializer,
    BulkAllocationSerializer,
    BulkStatusSerializer,
    RecommendationQuerySerializer,
    RecommendationSerializer,
)
from .spreadsheets import allocations_to_excel, read_allocation_rows, recommendation_to_excel

logger = logging.getLogger(__name__)

XLSX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _xlsx_response(payload: bytes, prefix: str) -> HttpResponse:
    filename = f"{prefix}_{timezone.now():%Y%m%d_%H%M}.xlsx"
    response = HttpResponse(payload, content_type=XLSX_CONTENT_TYPE)
    response["Content-Disposition"] = f'attachment; filename="{filename}"'
    return response


def _engine_options(data, actor):
    options = {
        "faculty_id": data.get("faculty_id"),
        "max_per_lecturer": data.get("max_per_lecturer"),
        "strategy": data.get("strategy"),
        "seed": data.get("seed"),
    }
    # non-admins only ever see their own faculty
    if not actor.is_admin:
        if actor.faculty_id is None:
            raise ForbiddenTransitionError("Your account is not attached to a faculty.")
        options["faculty_id"] = actor.faculty_id
    return options


class RecommendationView(APIView):
    """
    GET - dry-run recommendation (nothing is saved).
    ?export=xlsx returns the same result as a spreadsheet.
    """
    permission_classes = [CanManageAllocations]

    @extend_schema(
        parameters=[
            OpenApiParameter("faculty_id", int, required=False),
            OpenApiParameter("max_per_lecturer", int, required=False),
            OpenApiParameter("strategy", str, required=False, enum=["least_loaded", "shuffle"]),
            OpenApiParameter("seed", int, required=False),
            OpenApiParameter("export", str, required=False, enum=["xlsx"]),
        ],
        responses=RecommendationSerializer,
    )
    def get(self, request):
        query = RecommendationQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        actor = resolve_actor(request.user)
        rec = build_recommendation(**_engine_options(query.validated_data, actor))

        if request.query_params.get("export") == "xlsx":
            return _xlsx_response(recommendation_to_excel(rec), "recommendation")
        return Response(RecommendationSerializer(rec).data)


class AcceptRecommendationView(APIView):
    """Re-run the engine and persist the chosen students' assignments as PENDING allocations."""
    permission_classes = [CanManageAllocations]

    @extend_schema(request=AcceptRecommendationSerializer)
    def post(self, request):
        serializer = AcceptRecommendationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        actor = resolve_actor(request.user)
        rec = build_recommendation(**_engine_options(serializer.validated_data, actor))
        result = services.accept_recommendation(
            actor, rec.assignments, serializer.validated_data.get("student_ids")
        )
        return Response(result, status=status.HTTP_201_CREATED)


class AllocationListCreateView(APIView):
    """
    GET  - managers see every allocation in scope; lecturers see their own
           supervisees; students see their own record. ?status= filters,
           ?export=xlsx downloads.
    POST - create a single PENDING allocation.
    """

    def get_permissions(self):
        if self.request.method == "POST":
            return [CanManageAllocations()]
        return [IsAuthenticated()]

    @extend_schema(parameters=[
        OpenApiParameter("status", str, required=False, enum=AllocationStatus.values),
        OpenApiParameter("export", str, required=False, enum=["xlsx"]),
    ])
    def get(self, request):
        actor = resolve_actor(request.user)
        qs = (Allocation.objects
              .filter(is_deleted=False)
              .select_related("student", "lecturer", "proposal"))
        if actor.is_student:
            qs = qs.filter(student_id=actor.id)
        elif not actor.is_admin:
            if actor.is_dean or actor.is_division_head:
                qs = qs.filter(student__faculty_id=actor.faculty_id) | qs.filter(lecturer__faculty_id=actor.faculty_id)
            else:
                qs = qs.filter(lecturer_id=actor.id)

        status_filter = request.query_params.get("status")
        if status_filter:
            qs = qs.filter(status=status_filter)

        if request.query_params.get("export") == "xlsx":
            return _xlsx_response(allocations_to_excel(qs.distinct()), "allocations")
        return Response(AllocationSerializer(qs.distinct(), many=True).data)

    @extend_schema(request=AllocationCreateSerializer, responses=AllocationSerializer)
    def post(self, request):
        serializer = AllocationCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        allocation = services.create_allocation(resolve_actor(request.user), **serializer.validated_data)
        return Response(AllocationSerializer(allocation).data, status=status.HTTP_201_CREATED)


class AllocationDetailView(APIView):
    permission_classes = [CanManageAllocations]

    @extend_schema(request=AllocationUpdateSerializer, responses=AllocationSerializer)
    def patch(self, request, pk):
        serializer = AllocationUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        allocation = services.update_allocation(resolve_actor(request.user), pk, **serializer.validated_data)
        return Response(AllocationSerializer(allocation).data)

    def delete(self, request, pk):
        services.delete_allocation(resolve_actor(request.user), pk)
        return Response(status=status.HTTP_204_NO_CONTENT)


class AllocationStatusView(APIView):
    permission_classes = [CanManageAllocations]

    @extend_schema(request=AllocationStatusSerializer)
    def patch(self, request, pk):
        serializer = AllocationStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = services.update_allocation_status(
            resolve_actor(request.user), pk, serializer.validated_data["status"]
        )
        return Response(result)


class BulkAllocationView(APIView):
    permission_classes = [CanManageAllocations]

    @extend_schema(request=BulkAllocationSerializer)
    def post(self, request):
        serializer = BulkAllocationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = services.bulk_create_allocations(
            resolve_actor(request.user),
            serializer.validated_data["allocations"],
            skip_existing=serializer.validated_data["skip_existing"],
        )
        return Response(result, status=status.HTTP_201_CREATED)


class AllocationUploadView(APIView):
    """Bulk-create allocations from an uploaded .xlsx of student/lecturer codes."""
    permission_classes = [CanManageAllocations]
    parser_classes = [MultiPartParser, FormParser]

    @extend_schema(request=AllocationUploadSerializer)
    def post(self, request):
        serializer = AllocationUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            rows = read_allocation_rows(serializer.validated_data["file"])
        except ValueError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        except Exception as exc:
            logger.warning("Unreadable allocation upload: %s", exc)
            return Response({"detail": f"Failed to read Excel: {exc}"}, status=status.HTTP_400_BAD_REQUEST)

        result = services.bulk_create_allocations(
            resolve_actor(request.user), rows,
            skip_existing=serializer.validated_data["skip_existing"],
        )
        return Response(result, status=status.HTTP_201_CREATED)


class BulkStatusView(APIView):
    permission_classes = [CanManageAllocations]

    @extend_schema(request=BulkStatusSerializer)
    def post(self, request):
        serializer = BulkStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = services.bulk_update_allocation_status(
            resolve_actor(request.user),
            serializer.validated_data["ids"],
            serializer.validated_data["status"],
            create_proposals=serializer.validated_data["create_proposals"],
        )
        return Response(result)


class StatisticsView(APIView):
    permission_classes = [IsLecturerRole]

    def get(self, request):
        return Response(services.statistics())
