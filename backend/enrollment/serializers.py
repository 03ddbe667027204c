from rest_framework import serializers

from users.serializers import UserBriefSerializer
from .models import (
    LecturerOffer, OfferStatus, PreferenceStatus, StudentPreference, TopicPool,
)


class TopicPoolSerializer(serializers.ModelSerializer):
    class Meta:
        model = TopicPool
        fields = ['id', 'name', 'description', 'faculty', 'is_open', 'created_at']
        read_only_fields = ['id', 'created_at']


class StudentPreferenceSerializer(serializers.ModelSerializer):
    student = UserBriefSerializer(read_only=True)
    lecturer = UserBriefSerializer(read_only=True)
    topic_pool_name = serializers.CharField(source='topic_pool.name', read_only=True, default=None)

    class Meta:
        model = StudentPreference
        fields = [
            'id', 'student', 'priority', 'lecturer', 'topic_pool', 'topic_pool_name',
            'topic_title', 'description', 'status', 'approved_by', 'approved_at',
            'created_at', 'updated_at',
        ]
        read_only_fields = fields


class PreferenceWriteSerializer(serializers.Serializer):
    priority = serializers.IntegerField(min_value=1)
    lecturer_id = serializers.IntegerField(required=False, allow_null=True)
    topic_pool_id = serializers.IntegerField(required=False, allow_null=True)
    topic_title = serializers.CharField(required=False, allow_blank=True, max_length=255)
    description = serializers.CharField(required=False, allow_blank=True)

    def validate(self, attrs):
        if not self.partial and attrs.get('lecturer_id') is None and attrs.get('topic_pool_id') is None:
            raise serializers.ValidationError("Provide lecturer_id or topic_pool_id.")
        return attrs


class PreferenceStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=PreferenceStatus.choices)


class PreferenceBulkStatusSerializer(serializers.Serializer):
    ids = serializers.ListField(child=serializers.IntegerField(), allow_empty=False)
    status = serializers.ChoiceField(choices=PreferenceStatus.choices)


class LecturerOfferSerializer(serializers.ModelSerializer):
    lecturer = UserBriefSerializer(read_only=True)
    remaining = serializers.IntegerField(read_only=True)

    class Meta:
        model = LecturerOffer
        fields = [
            'id', 'lecturer', 'topic_pool', 'capacity', 'current_capacity', 'remaining',
            'status', 'is_active', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class OfferCreateSerializer(serializers.Serializer):
    capacity = serializers.IntegerField(min_value=1)
    topic_pool_id = serializers.IntegerField(required=False, allow_null=True)


class OfferUpdateSerializer(serializers.Serializer):
    capacity = serializers.IntegerField(min_value=1, required=False)
    is_active = serializers.BooleanField(required=False)


class OfferStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=OfferStatus.choices)
