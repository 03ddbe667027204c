from django.contrib import admin
from .models import Outline, Proposal, ProposalComment, ProposalMember


class ProposalMemberInline(admin.TabularInline):
    model = ProposalMember
    extra = 0
    fields = ['student', 'faculty_member', 'role', 'status']


class ProposalCommentInline(admin.TabularInline):
    model = ProposalComment
    extra = 0
    fields = ['content', 'commenter_student', 'commenter_faculty', 'created_at']
    readonly_fields = ['created_at']


@admin.register(Proposal)
class ProposalAdmin(admin.ModelAdmin):
    list_display = ['title', 'status', 'allocation', 'official_project', 'side_effect_pending', 'updated_at']
    list_filter = ['status', 'side_effect_pending']
    search_fields = ['title', 'allocation__student__username', 'allocation__lecturer__username']
    # Status moves only through the review workflow
    readonly_fields = ['status', 'version', 'approved_by', 'approved_at', 'official_project',
                       'side_effect_pending', 'side_effect_error', 'created_at', 'updated_at']
    inlines = [ProposalMemberInline, ProposalCommentInline]


@admin.register(Outline)
class OutlineAdmin(admin.ModelAdmin):
    list_display = ['id', 'status', 'updated_at']
    list_filter = ['status']
