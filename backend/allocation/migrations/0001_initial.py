import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("enrollment", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Allocation",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("topic_title", models.CharField(max_length=255)),
                ("status", models.CharField(choices=[("PENDING", "Pending"), ("APPROVED", "Approved"), ("REJECTED", "Rejected")], default="PENDING", max_length=20)),
                ("is_deleted", models.BooleanField(default=False)),
                ("allocated_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("created_by", models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="created_allocations", to=settings.AUTH_USER_MODEL)),
                ("lecturer", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="supervised_allocations", to=settings.AUTH_USER_MODEL)),
                ("offer", models.ForeignKey(blank=True, help_text="Offer whose capacity counter this allocation holds", null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="allocations", to="enrollment.lectureroffer")),
                ("student", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="allocations", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["-allocated_at", "-id"],
                "constraints": [
                    models.UniqueConstraint(condition=models.Q(("is_deleted", False)), fields=("student",), name="uniq_active_allocation_per_student"),
                ],
            },
        ),
    ]
