#projects/models.py
from django.db import models
from django.db.models import Q
from django.conf import settings

from proposals.choices import MemberRole, MemberStatus


class ProjectStatus(models.TextChoices):
    ACTIVE = "ACTIVE", "Active"
    COMPLETED = "COMPLETED", "Completed"
    CANCELLED = "CANCELLED", "Cancelled"


class OfficialProject(models.Model):
    """
    Durable project record created once a proposal is approved by a division
    head or dean. It does not follow later edits of the proposal.
    """
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    project_type = models.CharField(max_length=50, default="CAPSTONE")
    field = models.CharField(max_length=255, blank=True)
    status = models.CharField(max_length=20, choices=ProjectStatus.choices, default=ProjectStatus.ACTIVE)
    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name="approved_projects",
    )
    division = models.ForeignKey(
        "users.Division",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="projects",
    )
    topic_pool = models.ForeignKey(
        "enrollment.TopicPool",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="projects",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return self.title


class ProjectMember(models.Model):
    project = models.ForeignKey(OfficialProject, on_delete=models.CASCADE, related_name="members")
    student = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="project_memberships",
    )
    faculty_member = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="project_supervisions",
    )
    role = models.CharField(max_length=20, choices=MemberRole.choices)
    status = models.CharField(max_length=20, choices=MemberStatus.choices, default=MemberStatus.ACTIVE)

    class Meta:
        ordering = ["id"]
        constraints = [
            models.CheckConstraint(
                condition=(Q(student__isnull=False, faculty_member__isnull=True)
                           | Q(student__isnull=True, faculty_member__isnull=False)),
                name="project_member_student_xor_faculty",
            ),
        ]

    @property
    def user(self):
        return self.student or self.faculty_member

    def __str__(self):
        return f"{self.user} ({self.role}) in {self.project}"
