#proposals/models.py
from django.db import models
from django.db.models import Q
from django.conf import settings

from .choices import MemberRole, MemberStatus, OutlineStatus, ProposalStatus


class Outline(models.Model):
    introduction = models.TextField(blank=True)
    objectives = models.TextField(blank=True)
    methodology = models.TextField(blank=True)
    expected_results = models.TextField(blank=True)
    file_ref = models.CharField(max_length=500, blank=True, help_text="Storage key of an attached document")
    status = models.CharField(max_length=20, choices=OutlineStatus.choices, default=OutlineStatus.DRAFT)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Outline #{self.pk} ({self.status})"


class Proposal(models.Model):
    """
    Reviewable draft of a capstone project, opened from an allocation.

    ``status`` only changes through ``proposals.lifecycle``, which compares
    and bumps ``version`` on every write. ``official_project`` is set once the
    project has been materialized; ``side_effect_pending`` marks an approval
    whose project still has to be created.
    """
    allocation = models.OneToOneField(
        "allocation.Allocation",
        on_delete=models.CASCADE,
        related_name="proposal",
    )
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    status = models.CharField(
        max_length=40,
        choices=ProposalStatus.choices,
        default=ProposalStatus.TOPIC_SUBMISSION_PENDING,
    )
    topic_pool = models.ForeignKey(
        "enrollment.TopicPool",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="proposals",
    )
    outline = models.OneToOneField(
        Outline,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="proposal",
    )
    official_project = models.OneToOneField(
        "projects.OfficialProject",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="proposal",
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name="created_proposals",
    )
    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="approved_proposals",
    )
    approved_at = models.DateTimeField(null=True, blank=True)
    side_effect_pending = models.BooleanField(default=False)
    side_effect_error = models.TextField(blank=True)
    version = models.PositiveIntegerField(default=1)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-updated_at", "-id"]
        indexes = [
            models.Index(fields=["status", "side_effect_pending"], name="proposal_status_pending_idx"),
        ]

    def __str__(self):
        return f"{self.title} ({self.status})"

    def active_members(self, role=None):
        qs = self.members.filter(status=MemberStatus.ACTIVE)
        if role:
            qs = qs.filter(role=role)
        return qs

    @property
    def advisor(self):
        member = self.active_members(MemberRole.ADVISOR).select_related("faculty_member").first()
        return member.faculty_member if member else None


class ProposalMember(models.Model):
    proposal = models.ForeignKey(Proposal, on_delete=models.CASCADE, related_name="members")
    student = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="proposal_memberships",
    )
    faculty_member = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="proposal_advisories",
    )
    role = models.CharField(max_length=20, choices=MemberRole.choices)
    status = models.CharField(max_length=20, choices=MemberStatus.choices, default=MemberStatus.ACTIVE)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["id"]
        constraints = [
            models.CheckConstraint(
                condition=(Q(student__isnull=False, faculty_member__isnull=True)
                           | Q(student__isnull=True, faculty_member__isnull=False)),
                name="proposal_member_student_xor_faculty",
            ),
        ]

    @property
    def user(self):
        return self.student or self.faculty_member

    def __str__(self):
        return f"{self.user} ({self.role})"


class ProposalComment(models.Model):
    proposal = models.ForeignKey(Proposal, on_delete=models.CASCADE, related_name="comments")
    content = models.TextField()
    commenter_student = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    commenter_faculty = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        # newest first
        ordering = ["-created_at", "-id"]

    @property
    def commenter(self):
        return self.commenter_student or self.commenter_faculty

    def __str__(self):
        return f"Comment on {self.proposal_id} by {self.commenter}"
