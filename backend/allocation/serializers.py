#allocation/serializers.py
from rest_framework import serializers

from users.serializers import UserBriefSerializer
from .models import Allocation, AllocationStatus
from .recommendation import STRATEGIES


class AllocationSerializer(serializers.ModelSerializer):
    student = UserBriefSerializer(read_only=True)
    lecturer = UserBriefSerializer(read_only=True)
    proposal_id = serializers.SerializerMethodField()

    class Meta:
        model = Allocation
        fields = [
            "id", "student", "lecturer", "topic_title", "status",
            "offer", "proposal_id", "allocated_at", "updated_at",
        ]
        read_only_fields = fields

    def get_proposal_id(self, obj):
        proposal = getattr(obj, "proposal", None)
        return proposal.pk if proposal else None


class AllocationCreateSerializer(serializers.Serializer):
    student_id = serializers.IntegerField()
    lecturer_id = serializers.IntegerField()
    topic_title = serializers.CharField(required=False, allow_blank=True, max_length=255)


class AllocationUpdateSerializer(serializers.Serializer):
    lecturer_id = serializers.IntegerField(required=False)
    topic_title = serializers.CharField(required=False, allow_blank=True, max_length=255)


class AllocationStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=AllocationStatus.choices)


class BulkAllocationSerializer(serializers.Serializer):
    allocations = AllocationCreateSerializer(many=True, allow_empty=False)
    skip_existing = serializers.BooleanField(required=False, default=False)


class BulkStatusSerializer(serializers.Serializer):
    ids = serializers.ListField(child=serializers.IntegerField(), allow_empty=False)
    status = serializers.ChoiceField(choices=AllocationStatus.choices)
    create_proposals = serializers.BooleanField(required=False, default=True)


class RecommendationQuerySerializer(serializers.Serializer):
    faculty_id = serializers.IntegerField(required=False)
    max_per_lecturer = serializers.IntegerField(required=False, min_value=1)
    strategy = serializers.ChoiceField(choices=STRATEGIES, required=False)
    seed = serializers.IntegerField(required=False)


class AssignmentSerializer(serializers.Serializer):
    student_id = serializers.IntegerField()
    lecturer_id = serializers.IntegerField()
    topic_title = serializers.CharField(max_length=255)
    source = serializers.CharField()
    priority = serializers.IntegerField(allow_null=True)


class RecommendationSerializer(serializers.Serializer):
    assignments = AssignmentSerializer(many=True)
    unallocated = serializers.ListField(child=serializers.IntegerField())
    summary = serializers.SerializerMethodField()

    def get_summary(self, obj):
        return obj.summary()


class AcceptRecommendationSerializer(RecommendationQuerySerializer):
    """Engine options are re-applied server side; ``student_ids`` picks the subset to keep."""
    student_ids = serializers.ListField(child=serializers.IntegerField(), required=False)


class AllocationUploadSerializer(serializers.Serializer):
    file = serializers.FileField()
    skip_existing = serializers.BooleanField(required=False, default=False)
