from django.contrib import admin
from .models import Allocation


@admin.register(Allocation)
class AllocationAdmin(admin.ModelAdmin):
    list_display = ['student', 'lecturer', 'topic_title', 'status', 'is_deleted', 'allocated_at']
    list_filter = ['status', 'is_deleted']
    search_fields = ['student__username', 'student__code', 'lecturer__username', 'topic_title']
    # Status and the capacity link go through the allocation services
    readonly_fields = ['status', 'offer', 'created_by', 'allocated_at', 'updated_at']
