# backend/users/models.py
from django.contrib.auth.models import AbstractBaseUser, BaseUserManager
from django.db import models, transaction
from django.utils import timezone
import logging

logger = logging.getLogger(__name__)

ESSENTIAL_ROLES = ['Admin', 'Dean', 'Lecturer', 'Student']


class UserKind(models.TextChoices):
    STUDENT = 'STUDENT', 'Student'
    FACULTY = 'FACULTY', 'Faculty member'


class UserManager(BaseUserManager):
    """Custom user manager for username-based authentication."""

    def create_user(self, username, password=None, role_name=None, **extra_fields):
        if not username:
            raise ValueError("The username field must be set")

        extra_fields.setdefault('is_active', True)
        extra_fields.setdefault('kind', UserKind.STUDENT)

        if not role_name:
            role_name = 'Student' if extra_fields['kind'] == UserKind.STUDENT else 'Lecturer'
            logger.info("No role specified for user %s, assigning default role: %s", username, role_name)

        with transaction.atomic():
            user = self.model(username=username, **extra_fields)
            if password:
                user.set_password(password)
            else:
                user.set_unusable_password()
            user.save(using=self._db)
            self._assign_role_to_user(user, role_name)
        return user

    def create_superuser(self, username, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_active', True)
        extra_fields.setdefault('kind', UserKind.FACULTY)
        if extra_fields.get('is_staff') is not True:
            raise ValueError('Superuser must have is_staff=True.')
        return self.create_user(username, password, role_name='Admin', **extra_fields)

    def _assign_role_to_user(self, user, role_name):
        Role = self.model._meta.apps.get_model('users', 'Role')
        UserRoles = self.model._meta.apps.get_model('users', 'UserRoles')

        try:
            role = Role.objects.get(role_name=role_name)
        except Role.DoesNotExist:
            if role_name not in ESSENTIAL_ROLES:
                raise ValueError(f"Role '{role_name}' does not exist and is not an essential role")
            role, _ = Role.objects.get_or_create(
                role_name=role_name,
                defaults={'description': f'{role_name} role'}
            )

        with transaction.atomic():
            for user_role in UserRoles.objects.filter(user=user, is_active=True):
                user_role.disable()
            UserRoles.objects.create(user=user, role=role, is_active=True)


class User(AbstractBaseUser):
    """
    Custom User model with username as the unique identifier.

    Students and faculty members share the table; ``kind`` tells them apart
    and ``faculty`` is the organisational scope used by deans and by the
    allocation engine.
    """
    username    = models.CharField(max_length=150, unique=True)
    email       = models.EmailField(null=True, blank=True)
    first_name  = models.CharField(max_length=150, blank=True)
    last_name   = models.CharField(max_length=150, blank=True)
    kind        = models.CharField(max_length=10, choices=UserKind.choices, default=UserKind.STUDENT)
    code        = models.CharField(max_length=50, blank=True, help_text="Student number or staff code")
    faculty     = models.ForeignKey(
        'users.Faculty',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='members',
        help_text="Faculty the user belongs to"
    )
    is_active   = models.BooleanField(default=True)
    is_staff    = models.BooleanField(default=False)
    created_at  = models.DateTimeField(default=timezone.now)
    updated_at  = models.DateTimeField(auto_now=True)

    objects = UserManager()

    USERNAME_FIELD  = 'username'
    REQUIRED_FIELDS = []

    class Meta:
        verbose_name = 'User'
        verbose_name_plural = 'Users'

    def __str__(self):
        return self.get_full_name()

    @property
    def is_student(self):
        return self.kind == UserKind.STUDENT

    @property
    def is_faculty_member(self):
        return self.kind == UserKind.FACULTY

    def get_full_name(self):
        full_name = f'{self.first_name} {self.last_name}'.strip()
        return full_name or self.username

    def get_short_name(self):
        return self.first_name or self.username

    # Required methods for Django admin compatibility without PermissionsMixin
    def has_perm(self, perm, obj=None):
        return self.is_staff

    def has_module_perms(self, app_label):
        return self.is_staff

    def get_user_roles(self):
        """Get all active roles for this user."""
        Role = self._meta.apps.get_model('users', 'Role')
        return Role.objects.filter(userroles__user=self, userroles__is_active=True)

    def get_active_role(self):
        UserRoles = self._meta.apps.get_model('users', 'UserRoles')
        ur = (UserRoles.objects
              .filter(user=self, is_active=True)
              .select_related('role')
              .first())
        return ur.role if ur else None

    def get_active_role_name(self):
        role = self.get_active_role()
        return role.role_name if role else None

    def assign_role(self, role_name):
        """Assign a role to this user (single active role only)."""
        User.objects._assign_role_to_user(self, role_name)

    def remove_role(self, role_name):
        """Disable the given active role. Returns False when the user does not hold it."""
        UserRoles = self._meta.apps.get_model('users', 'UserRoles')
        user_role = UserRoles.objects.filter(
            user=self, role__role_name=role_name, is_active=True
        ).first()
        if user_role is None:
            return False
        user_role.disable()
        return True

    def has_role(self, role_name):
        UserRoles = self._meta.apps.get_model('users', 'UserRoles')
        return UserRoles.objects.filter(
            user=self,
            role__role_name=role_name,
            is_active=True
        ).exists()


class Role(models.Model):
    """Role model for the single-active-role permission system."""
    role_name = models.CharField(max_length=100, unique=True)
    description = models.TextField(blank=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Role'
        verbose_name_plural = 'Roles'

    def __str__(self):
        return self.role_name


class UserRoles(models.Model):
    """Many-to-many relationship between users and roles with auditing support."""
    user = models.ForeignKey(User, on_delete=models.CASCADE)
    role = models.ForeignKey(Role, on_delete=models.CASCADE)
    assigned_at = models.DateTimeField(default=timezone.now)
    is_active = models.BooleanField(default=True)
    disabled_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        verbose_name = 'User Role'
        verbose_name_plural = 'User Roles'

    def __str__(self):
        status = "Active" if self.is_active else "Disabled"
        return f"{self.user.username} - {self.role.role_name} ({status})"

    def disable(self):
        self.is_active = False
        self.disabled_at = timezone.now()
        self.save(update_fields=['is_active', 'disabled_at'])


class Faculty(models.Model):
    """Top-level academic unit. A dean's authority is scoped to one faculty."""
    code = models.CharField(max_length=20, unique=True)
    name = models.CharField(max_length=255)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['code']
        verbose_name = 'Faculty'
        verbose_name_plural = 'Faculties'

    def __str__(self):
        return f"{self.code} - {self.name}"


class Division(models.Model):
    """Sub-unit of a faculty (department). Division heads approve proposals."""
    faculty = models.ForeignKey(Faculty, on_delete=models.CASCADE, related_name='divisions')
    code = models.CharField(max_length=20)
    name = models.CharField(max_length=255)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['faculty__code', 'code']
        verbose_name = 'Division'
        verbose_name_plural = 'Divisions'
        constraints = [
            models.UniqueConstraint(fields=['faculty', 'code'], name='uniq_division_code_per_faculty'),
        ]

    def __str__(self):
        return f"{self.faculty.code}/{self.code} - {self.name}"


class DivisionRole(models.TextChoices):
    HEAD = 'HEAD', 'Head'
    MEMBER = 'MEMBER', 'Member'


class DivisionMembership(models.Model):
    """Administrative membership of a faculty member in a division."""
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='division_memberships')
    division = models.ForeignKey(Division, on_delete=models.CASCADE, related_name='memberships')
    role = models.CharField(max_length=10, choices=DivisionRole.choices, default=DivisionRole.MEMBER)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['id']
        verbose_name = 'Division Membership'
        verbose_name_plural = 'Division Memberships'
        constraints = [
            models.UniqueConstraint(fields=['user', 'division'], name='uniq_division_membership'),
        ]

    def __str__(self):
        return f"{self.user.username} @ {self.division.code} ({self.role})"
