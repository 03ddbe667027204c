#backend/users/serializers.py
from rest_framework import serializers
from .models import User, Role, Faculty, Division, DivisionMembership


class UserSerializer(serializers.ModelSerializer):
    """Serializer for User model (read)."""
    full_name = serializers.SerializerMethodField()
    role_name = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            'id', 'username', 'email',
            'first_name', 'last_name', 'full_name', 'role_name',
            'kind', 'code', 'faculty',
            'is_active', 'created_at', 'updated_at'
        ]
        read_only_fields = fields

    def get_full_name(self, obj):
        return obj.get_full_name()

    def get_role_name(self, obj):
        return obj.get_active_role_name()


class UserBriefSerializer(serializers.ModelSerializer):
    full_name = serializers.CharField(source='get_full_name', read_only=True)

    class Meta:
        model = User
        fields = ['id', 'username', 'full_name', 'code']


class RoleSerializer(serializers.ModelSerializer):
    class Meta:
        model = Role
        fields = ['id', 'role_name', 'description']


class DivisionSerializer(serializers.ModelSerializer):
    class Meta:
        model = Division
        fields = ['id', 'faculty', 'code', 'name']


class FacultySerializer(serializers.ModelSerializer):
    divisions = DivisionSerializer(many=True, read_only=True)

    class Meta:
        model = Faculty
        fields = ['id', 'code', 'name', 'divisions']


class DivisionMembershipSerializer(serializers.ModelSerializer):
    user = UserBriefSerializer(read_only=True)

    class Meta:
        model = DivisionMembership
        fields = ['id', 'user', 'division', 'role']


class ActorSerializer(serializers.Serializer):
    """Resolved identity of the caller, as seen by the workflow services."""
    id = serializers.IntegerField()
    kind = serializers.CharField()
    roles = serializers.ListField(child=serializers.CharField())
    faculty_id = serializers.IntegerField(allow_null=True)
    division_ids = serializers.ListField(child=serializers.IntegerField())
    headed_division_ids = serializers.ListField(child=serializers.IntegerField())

    def to_representation(self, actor):
        return {
            'id': actor.id,
            'kind': actor.kind,
            'roles': sorted(actor.roles),
            'faculty_id': actor.faculty_id,
            'division_ids': sorted(actor.division_ids),
            'headed_division_ids': sorted(actor.headed_division_ids),
            'is_admin': actor.is_admin,
            'is_dean': actor.is_dean,
            'is_division_head': actor.is_division_head,
        }
