#projects/serializers.py
from rest_framework import serializers

from users.serializers import UserBriefSerializer
from .models import OfficialProject, ProjectMember


class ProjectMemberSerializer(serializers.ModelSerializer):
    user = UserBriefSerializer(read_only=True)

    class Meta:
        model = ProjectMember
        fields = ['id', 'user', 'role', 'status']
        read_only_fields = fields


class OfficialProjectSerializer(serializers.ModelSerializer):
    members = ProjectMemberSerializer(many=True, read_only=True)
    approved_by = UserBriefSerializer(read_only=True)
    division_name = serializers.CharField(source='division.name', read_only=True, default=None)
    proposal_id = serializers.SerializerMethodField()

    class Meta:
        model = OfficialProject
        fields = [
            'id', 'title', 'description', 'project_type', 'field', 'status',
            'approved_by', 'division', 'division_name', 'topic_pool',
            'proposal_id', 'members', 'created_at', 'updated_at',
        ]
        read_only_fields = fields

    def get_proposal_id(self, obj):
        proposal = getattr(obj, 'proposal', None)
        return proposal.pk if proposal else None
