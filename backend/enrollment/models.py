from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import F, Q
from django.utils import timezone


class TopicPool(models.Model):
    """
    A registration round / field pool students and lecturers enrol into.
    """
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    faculty = models.ForeignKey(
        'users.Faculty',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='topic_pools',
        help_text="Faculty running this pool (empty = open to all)"
    )
    is_open = models.BooleanField(default=True, help_text="Accepting new preferences and offers")
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['name']
        verbose_name = 'Topic Pool'
        verbose_name_plural = 'Topic Pools'

    def __str__(self):
        return self.name


class PreferenceStatus(models.TextChoices):
    PENDING = 'PENDING', 'Pending'
    APPROVED = 'APPROVED', 'Approved'
    CONFIRMED = 'CONFIRMED', 'Confirmed'
    REJECTED = 'REJECTED', 'Rejected'


# Once a preference leaves PENDING its owner can no longer touch it
EDITABLE_PREFERENCE_STATUSES = (PreferenceStatus.PENDING,)
LOCKED_PREFERENCE_STATUSES = (PreferenceStatus.APPROVED, PreferenceStatus.CONFIRMED)


class StudentPreference(models.Model):
    """
    One ranked entry of a student's wish list (priority 1 = most preferred).
    """
    student = models.ForeignKey(
        'users.User',
        on_delete=models.CASCADE,
        related_name='preferences',
        help_text="Student stating the preference"
    )
    priority = models.PositiveIntegerField(
        validators=[MinValueValidator(1)],
        help_text="1 = highest, 2 = next, etc. Unique among the student's active preferences"
    )
    lecturer = models.ForeignKey(
        'users.User',
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='student_preferences',
        help_text="Desired supervising lecturer"
    )
    topic_pool = models.ForeignKey(
        TopicPool,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='preferences',
        help_text="Desired topic pool"
    )
    topic_title = models.CharField(max_length=255, blank=True)
    description = models.TextField(blank=True)
    status = models.CharField(
        max_length=20,
        choices=PreferenceStatus.choices,
        default=PreferenceStatus.PENDING
    )
    is_deleted = models.BooleanField(default=False)
    approved_by = models.ForeignKey(
        'users.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='approved_preferences'
    )
    approved_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'student_preference'
        ordering = ['student_id', 'priority']
        verbose_name = 'Student Preference'
        verbose_name_plural = 'Student Preferences'
        constraints = [
            models.UniqueConstraint(
                fields=['student', 'priority'],
                condition=Q(is_deleted=False),
                name='uniq_active_preference_priority',
            ),
            models.CheckConstraint(condition=Q(priority__gte=1), name='preference_priority_positive'),
        ]
        indexes = [
            models.Index(fields=['status', 'is_deleted'], name='pref_status_deleted_idx'),
        ]

    def __str__(self):
        return f"{self.student.username} #{self.priority} -> {self.lecturer_id or self.topic_pool_id}"

    @property
    def is_editable(self):
        return self.status in EDITABLE_PREFERENCE_STATUSES


class OfferStatus(models.TextChoices):
    PENDING = 'PENDING', 'Pending'
    APPROVED = 'APPROVED', 'Approved'
    REJECTED = 'REJECTED', 'Rejected'


class LecturerOffer(models.Model):
    """
    A lecturer's declared supervision capacity, optionally for one topic pool.

    ``current_capacity`` counts students already committed against the offer;
    the database enforces ``0 <= current_capacity <= capacity``.
    """
    lecturer = models.ForeignKey(
        'users.User',
        on_delete=models.CASCADE,
        related_name='offers',
        help_text="Lecturer offering supervision"
    )
    topic_pool = models.ForeignKey(
        TopicPool,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='offers'
    )
    capacity = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1)],
        help_text="Maximum number of students"
    )
    current_capacity = models.PositiveIntegerField(
        default=0,
        help_text="Students currently committed"
    )
    status = models.CharField(
        max_length=20,
        choices=OfferStatus.choices,
        default=OfferStatus.PENDING
    )
    is_active = models.BooleanField(default=True)
    is_deleted = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'lecturer_offer'
        ordering = ['lecturer_id', 'id']
        verbose_name = 'Lecturer Offer'
        verbose_name_plural = 'Lecturer Offers'
        constraints = [
            models.UniqueConstraint(fields=['lecturer', 'topic_pool'], name='uniq_offer_per_pool'),
            models.CheckConstraint(condition=Q(capacity__gte=1), name='offer_capacity_positive'),
            models.CheckConstraint(condition=Q(current_capacity__gte=0), name='offer_current_capacity_non_negative'),
            models.CheckConstraint(
                condition=Q(current_capacity__lte=F('capacity')),
                name='offer_current_capacity_within_capacity',
            ),
        ]

    def __str__(self):
        return f"{self.lecturer.username}: {self.current_capacity}/{self.capacity}"

    @property
    def remaining(self):
        return max(self.capacity - self.current_capacity, 0)
