from django.contrib import admin
from .models import TopicPool, StudentPreference, LecturerOffer


@admin.register(TopicPool)
class TopicPoolAdmin(admin.ModelAdmin):
    list_display = ['name', 'faculty', 'is_open', 'created_at']
    list_filter = ['is_open', 'faculty']
    search_fields = ['name']


@admin.register(StudentPreference)
class StudentPreferenceAdmin(admin.ModelAdmin):
    list_display = ['student', 'priority', 'lecturer', 'topic_pool', 'status', 'is_deleted', 'created_at']
    list_filter = ['status', 'is_deleted', 'topic_pool']
    search_fields = ['student__username', 'student__code', 'lecturer__username', 'topic_title']
    readonly_fields = ['approved_by', 'approved_at', 'created_at', 'updated_at']
    ordering = ['student__username', 'priority']


@admin.register(LecturerOffer)
class LecturerOfferAdmin(admin.ModelAdmin):
    list_display = ['lecturer', 'topic_pool', 'capacity', 'current_capacity', 'status', 'is_active', 'is_deleted']
    list_filter = ['status', 'is_active', 'is_deleted', 'topic_pool']
    search_fields = ['lecturer__username', 'lecturer__code']
    # The counter only moves through the allocation workflow
    readonly_fields = ['current_capacity', 'created_at', 'updated_at']
