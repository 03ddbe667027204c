import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Faculty",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("code", models.CharField(max_length=20, unique=True)),
                ("name", models.CharField(max_length=255)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Faculty",
                "verbose_name_plural": "Faculties",
                "ordering": ["code"],
            },
        ),
        migrations.CreateModel(
            name="Role",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("role_name", models.CharField(max_length=100, unique=True)),
                ("description", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Role",
                "verbose_name_plural": "Roles",
            },
        ),
        migrations.CreateModel(
            name="User",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("password", models.CharField(max_length=128, verbose_name="password")),
                ("last_login", models.DateTimeField(blank=True, null=True, verbose_name="last login")),
                ("username", models.CharField(max_length=150, unique=True)),
                ("email", models.EmailField(blank=True, max_length=254, null=True)),
                ("first_name", models.CharField(blank=True, max_length=150)),
                ("last_name", models.CharField(blank=True, max_length=150)),
                ("kind", models.CharField(choices=[("STUDENT", "Student"), ("FACULTY", "Faculty member")], default="STUDENT", max_length=10)),
                ("code", models.CharField(blank=True, help_text="Student number or staff code", max_length=50)),
                ("is_active", models.BooleanField(default=True)),
                ("is_staff", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("faculty", models.ForeignKey(blank=True, help_text="Faculty the user belongs to", null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="members", to="users.faculty")),
            ],
            options={
                "verbose_name": "User",
                "verbose_name_plural": "Users",
            },
        ),
        migrations.CreateModel(
            name="UserRoles",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("assigned_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("is_active", models.BooleanField(default=True)),
                ("disabled_at", models.DateTimeField(blank=True, null=True)),
                ("role", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="users.role")),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "verbose_name": "User Role",
                "verbose_name_plural": "User Roles",
            },
        ),
        migrations.CreateModel(
            name="Division",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("code", models.CharField(max_length=20)),
                ("name", models.CharField(max_length=255)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("faculty", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="divisions", to="users.faculty")),
            ],
            options={
                "verbose_name": "Division",
                "verbose_name_plural": "Divisions",
                "ordering": ["faculty__code", "code"],
                "constraints": [
                    models.UniqueConstraint(fields=("faculty", "code"), name="uniq_division_code_per_faculty"),
                ],
            },
        ),
        migrations.CreateModel(
            name="DivisionMembership",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("role", models.CharField(choices=[("HEAD", "Head"), ("MEMBER", "Member")], default="MEMBER", max_length=10)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("division", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="memberships", to="users.division")),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="division_memberships", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "verbose_name": "Division Membership",
                "verbose_name_plural": "Division Memberships",
                "ordering": ["id"],
                "constraints": [
                    models.UniqueConstraint(fields=("user", "division"), name="uniq_division_membership"),
                ],
            },
        ),
    ]
