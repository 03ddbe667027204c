import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("allocation", "0001_initial"),
        ("enrollment", "0001_initial"),
        ("projects", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Outline",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("introduction", models.TextField(blank=True)),
                ("objectives", models.TextField(blank=True)),
                ("methodology", models.TextField(blank=True)),
                ("expected_results", models.TextField(blank=True)),
                ("file_ref", models.CharField(blank=True, help_text="Storage key of an attached document", max_length=500)),
                ("status", models.CharField(choices=[("DRAFT", "Draft"), ("PENDING_REVIEW", "Pending review"), ("APPROVED", "Approved"), ("REJECTED", "Rejected")], default="DRAFT", max_length=20)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
        ),
        migrations.CreateModel(
            name="Proposal",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("title", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True)),
                ("status", models.CharField(choices=[
                    ("TOPIC_SUBMISSION_PENDING", "Topic submission pending"),
                    ("TOPIC_PENDING_ADVISOR", "Topic pending advisor"),
                    ("TOPIC_REQUESTED_CHANGES", "Topic changes requested"),
                    ("TOPIC_APPROVED", "Topic approved"),
                    ("OUTLINE_PENDING_SUBMISSION", "Outline pending submission"),
                    ("OUTLINE_PENDING_ADVISOR", "Outline pending advisor"),
                    ("OUTLINE_REQUESTED_CHANGES", "Outline changes requested"),
                    ("OUTLINE_REJECTED", "Outline rejected"),
                    ("OUTLINE_APPROVED", "Outline approved"),
                    ("PENDING_HEAD", "Pending head"),
                    ("REQUESTED_CHANGES_HEAD", "Changes requested by head"),
                    ("REJECTED_BY_HEAD", "Rejected by head"),
                    ("APPROVED_BY_HEAD", "Approved by head"),
                ], default="TOPIC_SUBMISSION_PENDING", max_length=40)),
                ("approved_at", models.DateTimeField(blank=True, null=True)),
                ("side_effect_pending", models.BooleanField(default=False)),
                ("side_effect_error", models.TextField(blank=True)),
                ("version", models.PositiveIntegerField(default=1)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("allocation", models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name="proposal", to="allocation.allocation")),
                ("approved_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="approved_proposals", to=settings.AUTH_USER_MODEL)),
                ("created_by", models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="created_proposals", to=settings.AUTH_USER_MODEL)),
                ("official_project", models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="proposal", to="projects.officialproject")),
                ("outline", models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="proposal", to="proposals.outline")),
                ("topic_pool", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="proposals", to="enrollment.topicpool")),
            ],
            options={
                "ordering": ["-updated_at", "-id"],
                "indexes": [models.Index(fields=["status", "side_effect_pending"], name="proposal_status_pending_idx")],
            },
        ),
        migrations.CreateModel(
            name="ProposalMember",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("role", models.CharField(choices=[("STUDENT", "Student"), ("ADVISOR", "Advisor"), ("MEMBER", "Member"), ("LEADER", "Leader")], max_length=20)),
                ("status", models.CharField(choices=[("ACTIVE", "Active"), ("REMOVED", "Removed")], default="ACTIVE", max_length=20)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("faculty_member", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name="proposal_advisories", to=settings.AUTH_USER_MODEL)),
                ("proposal", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="members", to="proposals.proposal")),
                ("student", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name="proposal_memberships", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["id"],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(models.Q(("faculty_member__isnull", True), ("student__isnull", False)), models.Q(("faculty_member__isnull", False), ("student__isnull", True)), _connector="OR"), name="proposal_member_student_xor_faculty"),
                ],
            },
        ),
        migrations.CreateModel(
            name="ProposalComment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("content", models.TextField()),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("commenter_faculty", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
                ("commenter_student", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
                ("proposal", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="comments", to="proposals.proposal")),
            ],
            options={
                "ordering": ["-created_at", "-id"],
            },
        ),
    ]
