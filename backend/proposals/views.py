from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from drf_spectacular.utils import OpenApiParameter, extend_schema

from allocation.models import Allocation
from capstone_portal.exceptions import ForbiddenTransitionError, NotFoundError
from users.identity import resolve_actor
from users.permissions import CanManageAllocations, IsLecturerRole, IsStudentRole
from . import lifecycle
from .bulk import bulk_transition
from .choices import ProposalStatus
from .serializers import (
    BulkReviewSerializer,
    CommentCreateSerializer,
    OutlineSubmitSerializer,
    ProposalCommentSerializer,
    ProposalCreateSerializer,
    ProposalSerializer,
    ReviewSerializer,
    TopicUpdateSerializer,
    TransitionResultSerializer,
)


def _visible_proposal(request, pk):
    actor = resolve_actor(request.user)
    proposal = lifecycle.get_proposal(pk)
    if not lifecycle.can_view(proposal, actor):
        raise ForbiddenTransitionError(f"You cannot view proposal {pk}.", ids=[pk])
    return proposal


class ProposalListCreateView(APIView):
    """
    GET  - proposals visible to the caller (?status= filters)
    POST - explicitly open the proposal of an allocation
    """

    def get_permissions(self):
        if self.request.method == "POST":
            return [CanManageAllocations()]
        return [IsAuthenticated()]

    @extend_schema(
        parameters=[OpenApiParameter("status", str, required=False, enum=ProposalStatus.values)],
        responses=ProposalSerializer(many=True),
    )
    def get(self, request):
        qs = lifecycle.proposals_for(resolve_actor(request.user))
        status_filter = request.query_params.get("status")
        if status_filter:
            qs = qs.filter(status=status_filter)
        return Response(ProposalSerializer(qs, many=True).data)

    @extend_schema(request=ProposalCreateSerializer, responses=ProposalSerializer)
    def post(self, request):
        serializer = ProposalCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        allocation_id = serializer.validated_data["allocation_id"]
        allocation = Allocation.objects.filter(pk=allocation_id, is_deleted=False).first()
        if allocation is None:
            raise NotFoundError(f"Allocation {allocation_id} not found.")
        proposal = lifecycle.create_for_allocation(allocation, created_by_id=request.user.pk)
        return Response(ProposalSerializer(proposal).data, status=status.HTTP_201_CREATED)


class ProposalDetailView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(responses=ProposalSerializer)
    def get(self, request, pk):
        return Response(ProposalSerializer(_visible_proposal(request, pk)).data)


class TopicView(APIView):
    """Student edits the working title; ``submit`` hands it to the advisor."""
    permission_classes = [IsStudentRole]

    @extend_schema(request=TopicUpdateSerializer, responses=TransitionResultSerializer)
    def patch(self, request, pk):
        serializer = TopicUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = lifecycle.update_topic(pk, resolve_actor(request.user), **serializer.validated_data)
        return Response(result.as_dict())


class OutlineSubmitView(APIView):
    permission_classes = [IsStudentRole]

    @extend_schema(request=OutlineSubmitSerializer, responses=TransitionResultSerializer)
    def put(self, request, pk):
        serializer = OutlineSubmitSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = lifecycle.submit_outline(pk, resolve_actor(request.user), **serializer.validated_data)
        return Response(result.as_dict())


class _ReviewView(APIView):
    permission_classes = [IsLecturerRole]
    review = None

    @extend_schema(request=ReviewSerializer, responses=TransitionResultSerializer)
    def post(self, request, pk):
        serializer = ReviewSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = type(self).review(
            pk,
            resolve_actor(request.user),
            serializer.validated_data["status"],
            serializer.validated_data.get("comment") or None,
        )
        return Response(result.as_dict())


class AdvisorReviewView(_ReviewView):
    review = lifecycle.advisor_review


class HeadReviewView(_ReviewView):
    review = lifecycle.head_review


class DeanReviewView(_ReviewView):
    review = lifecycle.dean_review


class OutlineReviewView(_ReviewView):
    review = lifecycle.review_outline


class BulkReviewView(APIView):
    permission_classes = [IsLecturerRole]

    @extend_schema(request=BulkReviewSerializer)
    def post(self, request):
        serializer = BulkReviewSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        result = bulk_transition(
            data["ids"], data["status"], resolve_actor(request.user), data["role"],
            comment=data.get("comment") or None,
        )
        return Response(result.as_dict())


class CommentListCreateView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(responses=ProposalCommentSerializer(many=True))
    def get(self, request, pk):
        _visible_proposal(request, pk)
        return Response(ProposalCommentSerializer(lifecycle.list_comments(pk), many=True).data)

    @extend_schema(request=CommentCreateSerializer, responses=ProposalCommentSerializer)
    def post(self, request, pk):
        serializer = CommentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        comment = lifecycle.add_comment(pk, resolve_actor(request.user), serializer.validated_data["content"])
        return Response(ProposalCommentSerializer(comment).data, status=status.HTTP_201_CREATED)
