#proposals/serializers.py
from rest_framework import serializers

from users.serializers import UserBriefSerializer
from .choices import ProposalStatus, ReviewerRole
from .models import Outline, Proposal, ProposalComment, ProposalMember


class ProposalMemberSerializer(serializers.ModelSerializer):
    user = UserBriefSerializer(read_only=True)

    class Meta:
        model = ProposalMember
        fields = ['id', 'user', 'role', 'status']
        read_only_fields = fields


class OutlineSerializer(serializers.ModelSerializer):
    class Meta:
        model = Outline
        fields = [
            'id', 'introduction', 'objectives', 'methodology', 'expected_results',
            'file_ref', 'status', 'updated_at',
        ]
        read_only_fields = fields


class ProposalSerializer(serializers.ModelSerializer):
    members = ProposalMemberSerializer(many=True, read_only=True)
    outline = OutlineSerializer(read_only=True)

    class Meta:
        model = Proposal
        fields = [
            'id', 'allocation', 'title', 'description', 'status', 'topic_pool',
            'members', 'outline', 'official_project', 'approved_by', 'approved_at',
            'side_effect_pending', 'side_effect_error', 'version',
            'created_at', 'updated_at',
        ]
        read_only_fields = fields


class ProposalCommentSerializer(serializers.ModelSerializer):
    commenter = UserBriefSerializer(read_only=True)

    class Meta:
        model = ProposalComment
        fields = ['id', 'content', 'commenter', 'created_at']
        read_only_fields = fields


class CommentCreateSerializer(serializers.Serializer):
    content = serializers.CharField()


class ProposalCreateSerializer(serializers.Serializer):
    allocation_id = serializers.IntegerField()


class TopicUpdateSerializer(serializers.Serializer):
    title = serializers.CharField(required=False, max_length=255)
    description = serializers.CharField(required=False, allow_blank=True)
    submit = serializers.BooleanField(required=False, default=False)


class OutlineSubmitSerializer(serializers.Serializer):
    introduction = serializers.CharField(required=False, allow_blank=True)
    objectives = serializers.CharField(required=False, allow_blank=True)
    methodology = serializers.CharField(required=False, allow_blank=True)
    expected_results = serializers.CharField(required=False, allow_blank=True)
    file_ref = serializers.CharField(required=False, allow_blank=True, max_length=500)
    submit = serializers.BooleanField(required=False, default=True)


class ReviewSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=ProposalStatus.choices)
    comment = serializers.CharField(required=False, allow_blank=True)


class BulkReviewSerializer(ReviewSerializer):
    ids = serializers.ListField(child=serializers.IntegerField(), allow_empty=False)
    role = serializers.ChoiceField(choices=[
        (ReviewerRole.ADVISOR, ReviewerRole.ADVISOR.label),
        (ReviewerRole.DIVISION_HEAD, ReviewerRole.DIVISION_HEAD.label),
        (ReviewerRole.DEAN, ReviewerRole.DEAN.label),
    ])


class TransitionResultSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    title = serializers.CharField()
    previous_status = serializers.CharField()
    new_status = serializers.CharField()
    success = serializers.BooleanField()
    error = serializers.CharField(allow_null=True)
    side_effect_error = serializers.CharField(allow_null=True)
