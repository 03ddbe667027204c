from django.contrib import admin
from .models import OfficialProject, ProjectMember


class ProjectMemberInline(admin.TabularInline):
    model = ProjectMember
    extra = 0
    fields = ['student', 'faculty_member', 'role', 'status']


@admin.register(OfficialProject)
class OfficialProjectAdmin(admin.ModelAdmin):
    list_display = ['title', 'status', 'division', 'approved_by', 'created_at']
    list_filter = ['status', 'division']
    search_fields = ['title']
    readonly_fields = ['approved_by', 'created_at', 'updated_at']
    inlines = [ProjectMemberInline]
