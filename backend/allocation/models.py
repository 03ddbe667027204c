#allocation/models.py
from django.db import models
from django.db.models import Q
from django.conf import settings
from django.utils import timezone


class AllocationStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    APPROVED = "APPROVED", "Approved"
    REJECTED = "REJECTED", "Rejected"


class Allocation(models.Model):
    """
    Links a student to a supervising lecturer and a working topic title.
    A student holds at most one non-deleted allocation.
    """
    student = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="allocations",
    )
    lecturer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="supervised_allocations",
    )
    topic_title = models.CharField(max_length=255)
    status = models.CharField(
        max_length=20,
        choices=AllocationStatus.choices,
        default=AllocationStatus.PENDING,
    )
    offer = models.ForeignKey(
        "enrollment.LecturerOffer",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="allocations",
        help_text="Offer whose capacity counter this allocation holds",
    )
    is_deleted = models.BooleanField(default=False)
    allocated_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name="created_allocations",
    )

    class Meta:
        ordering = ["-allocated_at", "-id"]
        constraints = [
            models.UniqueConstraint(
                fields=["student"],
                condition=Q(is_deleted=False),
                name="uniq_active_allocation_per_student",
            ),
        ]

    def __str__(self):
        return f"{self.student} -> {self.lecturer} ({self.status})"
