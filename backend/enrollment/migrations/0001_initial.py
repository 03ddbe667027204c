import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("users", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="TopicPool",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True)),
                ("is_open", models.BooleanField(default=True, help_text="Accepting new preferences and offers")),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("faculty", models.ForeignKey(blank=True, help_text="Faculty running this pool (empty = open to all)", null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="topic_pools", to="users.faculty")),
            ],
            options={
                "verbose_name": "Topic Pool",
                "verbose_name_plural": "Topic Pools",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="StudentPreference",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("priority", models.PositiveIntegerField(help_text="1 = highest, 2 = next, etc. Unique among the student's active preferences", validators=[django.core.validators.MinValueValidator(1)])),
                ("topic_title", models.CharField(blank=True, max_length=255)),
                ("description", models.TextField(blank=True)),
                ("status", models.CharField(choices=[("PENDING", "Pending"), ("APPROVED", "Approved"), ("CONFIRMED", "Confirmed"), ("REJECTED", "Rejected")], default="PENDING", max_length=20)),
                ("is_deleted", models.BooleanField(default=False)),
                ("approved_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("approved_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="approved_preferences", to=settings.AUTH_USER_MODEL)),
                ("lecturer", models.ForeignKey(blank=True, help_text="Desired supervising lecturer", null=True, on_delete=django.db.models.deletion.CASCADE, related_name="student_preferences", to=settings.AUTH_USER_MODEL)),
                ("student", models.ForeignKey(help_text="Student stating the preference", on_delete=django.db.models.deletion.CASCADE, related_name="preferences", to=settings.AUTH_USER_MODEL)),
                ("topic_pool", models.ForeignKey(blank=True, help_text="Desired topic pool", null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="preferences", to="enrollment.topicpool")),
            ],
            options={
                "verbose_name": "Student Preference",
                "verbose_name_plural": "Student Preferences",
                "db_table": "student_preference",
                "ordering": ["student_id", "priority"],
                "indexes": [
                    models.Index(fields=["status", "is_deleted"], name="pref_status_deleted_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(condition=models.Q(("is_deleted", False)), fields=("student", "priority"), name="uniq_active_preference_priority"),
                    models.CheckConstraint(condition=models.Q(("priority__gte", 1)), name="preference_priority_positive"),
                ],
            },
        ),
        migrations.CreateModel(
            name="LecturerOffer",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("capacity", models.PositiveIntegerField(default=1, help_text="Maximum number of students", validators=[django.core.validators.MinValueValidator(1)])),
                ("current_capacity", models.PositiveIntegerField(default=0, help_text="Students currently committed")),
                ("status", models.CharField(choices=[("PENDING", "Pending"), ("APPROVED", "Approved"), ("REJECTED", "Rejected")], default="PENDING", max_length=20)),
                ("is_active", models.BooleanField(default=True)),
                ("is_deleted", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("lecturer", models.ForeignKey(help_text="Lecturer offering supervision", on_delete=django.db.models.deletion.CASCADE, related_name="offers", to=settings.AUTH_USER_MODEL)),
                ("topic_pool", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="offers", to="enrollment.topicpool")),
            ],
            options={
                "verbose_name": "Lecturer Offer",
                "verbose_name_plural": "Lecturer Offers",
                "db_table": "lecturer_offer",
                "ordering": ["lecturer_id", "id"],
                "constraints": [
                    models.UniqueConstraint(fields=("lecturer", "topic_pool"), name="uniq_offer_per_pool"),
                    models.CheckConstraint(condition=models.Q(("capacity__gte", 1)), name="offer_capacity_positive"),
                    models.CheckConstraint(condition=models.Q(("current_capacity__gte", 0)), name="offer_current_capacity_non_negative"),
                    models.CheckConstraint(condition=models.Q(("current_capacity__lte", models.F("capacity"))), name="offer_current_capacity_within_capacity"),
                ],
            },
        ),
    ]
